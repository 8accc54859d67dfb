"""Tests for source modules."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from youtube_transcript_api._errors import TranscriptsDisabled

from melt_tube.sources.local_file import load_local_transcript
from melt_tube.sources.youtube import (
    TranscriptUnavailable,
    _snippets_to_text,
    extract_video_id,
    fetch_transcript,
    select_track,
)


def make_track(lang: str = "en", generated: bool = False, texts: list[str] | None = None) -> MagicMock:
    track = MagicMock()
    track.language_code = lang
    track.is_generated = generated
    fetched = MagicMock()
    fetched.snippets = [MagicMock(text=t) for t in (texts or ["Hello", "World"])]
    track.fetch.return_value = fetched
    return track


class TestExtractVideoId:
    """Tests for YouTube video ID extraction."""

    def test_standard_url(self) -> None:
        assert extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_short_url(self) -> None:
        assert extract_video_id("https://youtu.be/dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_embed_url(self) -> None:
        assert extract_video_id("https://www.youtube.com/embed/dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_shorts_url(self) -> None:
        assert extract_video_id("https://www.youtube.com/shorts/dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_url_with_params(self) -> None:
        assert extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=120") == "dQw4w9WgXcQ"

    def test_v_not_first_param(self) -> None:
        assert extract_video_id("https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_bare_id(self) -> None:
        assert extract_video_id("dQw4w9WgXcQ") == "dQw4w9WgXcQ"

    def test_invalid_url(self) -> None:
        assert extract_video_id("https://example.com") is None

    def test_invalid_id_length(self) -> None:
        assert extract_video_id("tooshort") is None


class TestSnippetsToText:
    """Tests for snippet conversion."""

    def test_strips_and_joins(self) -> None:
        snippets = [MagicMock(text="  Hello  "), MagicMock(text="\nWorld\n")]
        assert _snippets_to_text(snippets) == "Hello World"

    def test_skips_empty(self) -> None:
        snippets = [MagicMock(text=""), MagicMock(text="Content"), MagicMock(text=None)]
        assert _snippets_to_text(snippets) == "Content"


class TestSelectTrack:
    """Tests for caption track selection."""

    def test_prefers_manual(self) -> None:
        auto = make_track(generated=True)
        manual = make_track(generated=False)
        assert select_track([auto, manual]) is manual

    def test_falls_back_to_generated(self) -> None:
        auto = make_track(generated=True)
        assert select_track([make_track(lang="de"), auto]) is auto

    def test_no_matching_language(self) -> None:
        assert select_track([make_track(lang="fr")], "en") is None


class TestFetchTranscript:
    """Tests for youtube-transcript-api integration."""

    @patch("melt_tube.sources.youtube.YouTubeTranscriptApi")
    def test_fetch_manual(self, mock_api_class: MagicMock) -> None:
        mock_api_class.return_value.list.return_value = [make_track(texts=["Hello", "there"])]

        result = fetch_transcript("https://youtu.be/dQw4w9WgXcQ")

        assert result.text == "Hello there"
        assert result.video_id == "dQw4w9WgXcQ"
        assert result.lang == "en"
        assert result.method == "manual"
        mock_api_class.return_value.list.assert_called_once_with("dQw4w9WgXcQ")

    @patch("melt_tube.sources.youtube.YouTubeTranscriptApi")
    def test_fetch_generated(self, mock_api_class: MagicMock) -> None:
        mock_api_class.return_value.list.return_value = [make_track(generated=True)]
        assert fetch_transcript("dQw4w9WgXcQ").method == "asr"

    def test_no_video_id(self) -> None:
        with pytest.raises(TranscriptUnavailable, match="No video ID"):
            fetch_transcript("https://example.com/page")

    @patch("melt_tube.sources.youtube.YouTubeTranscriptApi")
    def test_captions_disabled(self, mock_api_class: MagicMock) -> None:
        mock_api_class.return_value.list.side_effect = TranscriptsDisabled("dQw4w9WgXcQ")

        with pytest.raises(TranscriptUnavailable) as excinfo:
            fetch_transcript("dQw4w9WgXcQ")
        assert excinfo.value.reason.startswith("No captions metadata found")

    @patch("melt_tube.sources.youtube.YouTubeTranscriptApi")
    def test_no_matching_track(self, mock_api_class: MagicMock) -> None:
        mock_api_class.return_value.list.return_value = [make_track(lang="ja")]

        with pytest.raises(TranscriptUnavailable, match="No suitable caption track"):
            fetch_transcript("dQw4w9WgXcQ", lang="en")

    @patch("melt_tube.sources.youtube.YouTubeTranscriptApi")
    def test_empty_track(self, mock_api_class: MagicMock) -> None:
        mock_api_class.return_value.list.return_value = [make_track(texts=["", "  "])]

        with pytest.raises(TranscriptUnavailable, match="No transcript available"):
            fetch_transcript("dQw4w9WgXcQ")

    @patch("melt_tube.sources.youtube.YouTubeTranscriptApi")
    def test_fetch_failure(self, mock_api_class: MagicMock) -> None:
        track = make_track()
        track.fetch.side_effect = RuntimeError("network down")
        mock_api_class.return_value.list.return_value = [track]

        with pytest.raises(TranscriptUnavailable, match="network down"):
            fetch_transcript("dQw4w9WgXcQ")


class TestLocalFile:
    """Tests for local transcript files."""

    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "talk.txt"
        path.write_text("Some transcript.", encoding="utf-8")

        result = load_local_transcript(path)
        assert result.text == "Some transcript."
        assert result.title == "talk"
        assert load_local_transcript(path, title="Custom").title == "Custom"

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(TranscriptUnavailable, match="File not found"):
            load_local_transcript(tmp_path / "nope.txt")

    def test_wrong_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "talk.md"
        path.write_text("x")
        with pytest.raises(TranscriptUnavailable, match=r"\.txt"):
            load_local_transcript(path)

    def test_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.txt"
        path.write_text("  \n")
        with pytest.raises(TranscriptUnavailable, match="empty"):
            load_local_transcript(path)
