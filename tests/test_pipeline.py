import json

import pytest

from conftest import guide_dict, guides_json
from speakerguide.errors import (
    EmptyInputError,
    FileTooLargeError,
    GenerationInProgressError,
    QuotaExceeded,
    RateLimited,
    SlideCountMismatchError,
    TooManySlidesError,
    UpstreamUnavailable,
)
from speakerguide.pipeline_request import EMPTY_SLIDE_PLACEHOLDER


def echo_guides(request):
    return guides_json(request.slide_count)


def test_acme_pitch_two_slides(make_pipeline, session):
    pipeline = make_pipeline(echo_guides)
    deck = pipeline.generate_deck("Acme Pitch", ["Welcome to Acme", ""])
    assert deck.slide_count == 2
    assert deck.title == "Acme Pitch"
    assert [g.slide_number for g in deck.guides] == [1, 2]
    assert EMPTY_SLIDE_PLACEHOLDER in pipeline.llm.requests[0].user_prompt
    assert session.store.current() is deck
    assert not session.is_busy


def test_guides_follow_input_order_and_length(make_pipeline):
    texts = [f"slide body {i}" for i in range(1, 8)]
    guides = make_pipeline(echo_guides).generate_guides("Deck", texts)
    assert len(guides) == 7
    assert [g.slide_number for g in guides] == list(range(1, 8))


def test_fenced_response(make_pipeline):
    deck = make_pipeline("```json\n" + guides_json(1) + "\n```").generate_deck("Deck", ["x"])
    assert deck.slide_count == 1


@pytest.mark.parametrize(
    "title, texts, error",
    [("Deck", [], EmptyInputError), ("", ["x"], EmptyInputError), ("Deck", ["x"] * 101, TooManySlidesError)],
)
def test_invalid_input_never_reaches_backend(make_pipeline, session, title, texts, error):
    pipeline = make_pipeline(echo_guides)
    with pytest.raises(error):
        pipeline.generate_deck(title, texts)
    assert pipeline.llm.requests == []
    assert not session.is_busy


def test_count_mismatch_leaves_previous_deck(make_pipeline, session):
    pipeline = make_pipeline(echo_guides, guides_json(2))
    previous = pipeline.generate_deck("Old", ["a"])
    with pytest.raises(SlideCountMismatchError):
        pipeline.generate_deck("New", ["a", "b", "c"])
    assert session.store.current() is previous
    assert not session.is_busy


def test_transport_errors_leave_store_untouched(make_pipeline, session):
    pipeline = make_pipeline(RateLimited(retry_after=5), QuotaExceeded())
    with pytest.raises(RateLimited):
        pipeline.generate_deck("Deck", ["a"])
    with pytest.raises(QuotaExceeded):
        pipeline.generate_deck("Deck", ["a"])
    assert session.store.current() is None


def test_busy_session_rejects(make_pipeline, session):
    session.begin()
    pipeline = make_pipeline(echo_guides)
    with pytest.raises(GenerationInProgressError):
        pipeline.generate_deck("Deck", ["a"])
    assert pipeline.llm.requests == []


def test_abandoned_generation_returns_none(make_pipeline, session):
    def abandon_mid_flight(request):
        session.abandon()
        return guides_json(request.slide_count)

    pipeline = make_pipeline(abandon_mid_flight)
    assert pipeline.generate_deck("Deck", ["a"]) is None
    assert session.store.current() is None


class TestRetry:
    def test_no_retries_by_default(self, make_pipeline):
        pipeline = make_pipeline(UpstreamUnavailable(503), echo_guides)
        with pytest.raises(UpstreamUnavailable):
            pipeline.generate_guides("Deck", ["a"])
        assert len(pipeline.llm.requests) == 1

    def test_retries_honour_retry_after_then_backoff(self, make_pipeline):
        waits = []
        pipeline = make_pipeline(RateLimited(retry_after=7), UpstreamUnavailable(503), echo_guides, retries=2)
        pipeline._sleep = waits.append
        guides = pipeline.generate_guides("Deck", ["a"])
        assert len(guides) == 1
        assert waits == [7, 4.0]

    def test_retry_wait_is_capped(self, make_pipeline):
        waits = []
        pipeline = make_pipeline(RateLimited(retry_after=600), echo_guides, retries=1)
        pipeline._sleep = waits.append
        pipeline.generate_guides("Deck", ["a"])
        assert waits == [60.0]

    def test_non_retryable_is_raised_immediately(self, make_pipeline):
        pipeline = make_pipeline(QuotaExceeded(), echo_guides, retries=3)
        with pytest.raises(QuotaExceeded):
            pipeline.generate_guides("Deck", ["a"])
        assert len(pipeline.llm.requests) == 1

    def test_gives_up_after_budget(self, make_pipeline):
        pipeline = make_pipeline(UpstreamUnavailable(), UpstreamUnavailable(), retries=1)
        with pytest.raises(UpstreamUnavailable):
            pipeline.generate_guides("Deck", ["a"])
        assert len(pipeline.llm.requests) == 2


class TestUploads:
    def test_pdf_upload_uses_filename_title(self, make_pipeline, pdf_bytes):
        pipeline = make_pipeline(echo_guides)
        deck = pipeline.run_upload(pdf_bytes, "Acme Pitch.pdf")
        assert deck.title == "Acme Pitch"
        assert deck.slide_count == 3
        assert EMPTY_SLIDE_PLACEHOLDER in pipeline.llm.requests[0].user_prompt

    def test_pptx_upload_with_explicit_title(self, make_pipeline, pptx_bytes):
        pipeline = make_pipeline(echo_guides)
        deck = pipeline.run_upload(pptx_bytes, "deck.pptx", title="Investor Update")
        assert deck.title == "Investor Update"
        assert deck.slide_count == 3
        assert "Grouped note" in pipeline.llm.requests[0].user_prompt

    def test_upload_limit(self, make_pipeline, pdf_bytes):
        pipeline = make_pipeline(echo_guides)
        pipeline.cfg.max_upload_bytes = 10
        with pytest.raises(FileTooLargeError):
            pipeline.run_upload(pdf_bytes, "deck.pdf")
        assert pipeline.llm.requests == []

    def test_run_file(self, make_pipeline, tmp_path, pptx_bytes):
        path = tmp_path / "Q3 Review.pptx"
        path.write_bytes(pptx_bytes)
        deck = make_pipeline(echo_guides).run_file(path)
        assert deck.title == "Q3 Review"


def test_stats_and_energy_survive_pipeline(make_pipeline):
    items = [guide_dict(1, stats=["$2.3B"], speakerReminder={"timing": "2 minutes", "energy": "LOW"})]
    guide = make_pipeline(json.dumps(items)).generate_guides("Deck", ["a"])[0]
    assert guide.stats == ["$2.3B"]
    assert guide.speaker_reminder.energy == "Low"
