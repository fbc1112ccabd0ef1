"""
speakerguide - AI speaker guides for slide presentations.

Building blocks:

- extract_slides: per-slide text from PDF / PPTX uploads
- sanitize_inputs: bound and clean the deck title and slide texts
- build_guide_request: the prompt pair sent to the model
- ChatCompletionsClient: the generation backend
- parse_guides: validate model output into ordered SlideGuide records
- GuideSession / GuideStore: the current deck for rehearsal
- Pipeline: all of the above, end to end
"""

__version__ = "0.1.0"

from .extract_utils import extract_slides
from .guide_store import GuideSession, GuideStore
from .llm import ChatCompletionsClient, GenerationBackend, LLMConfig
from .models import Deck, SlideGuide, SlideText, SpeakerReminder
from .pipeline import Pipeline, RunConfig
from .pipeline_parse import parse_guides
from .pipeline_request import build_guide_request
from .pipeline_sanitize import sanitize_inputs

__all__ = [
    "ChatCompletionsClient",
    "Deck",
    "GenerationBackend",
    "GuideSession",
    "GuideStore",
    "LLMConfig",
    "Pipeline",
    "RunConfig",
    "SlideGuide",
    "SlideText",
    "SpeakerReminder",
    "build_guide_request",
    "extract_slides",
    "parse_guides",
    "sanitize_inputs",
]
