"""Unit tests for benchmark case tables and case file loading."""

from pathlib import Path

import pytest

from tcbench.errors import CaseFileError
from tcbench.harness.cases import (
    AUDIO_ASYNC_GROUP,
    AUDIO_SYNC_GROUP,
    DEFAULT_CASES,
    VIDEO_ASYNC_GROUP,
    VIDEO_SYNC_GROUP,
    BenchmarkCase,
    case_groups,
    load_cases,
    load_cases_from_dict,
    select_cases,
)


class TestBenchmarkCase:
    """Tests for BenchmarkCase labels."""

    def test_mode_label(self) -> None:
        assert BenchmarkCase("a.mp4").mode_label == "sync"
        assert BenchmarkCase("a.mp4", async_mode=True).mode_label == "async"

    def test_empty_codec_means_default(self) -> None:
        assert BenchmarkCase("a.mp4").codec_label == "default"
        assert BenchmarkCase("a.mp4", "libx264").codec_label == "libx264"

    def test_str(self) -> None:
        case = BenchmarkCase("a.mp4", "mpeg4", True)
        assert str(case) == "a.mp4 [mpeg4, async]"


class TestDefaultCases:
    """Tests for the built-in case table."""

    def test_groups_in_order(self) -> None:
        assert case_groups(DEFAULT_CASES) == [
            AUDIO_SYNC_GROUP,
            AUDIO_ASYNC_GROUP,
            VIDEO_SYNC_GROUP,
            VIDEO_ASYNC_GROUP,
        ]

    def test_group_sizes(self) -> None:
        counts = {g: 0 for g in case_groups(DEFAULT_CASES)}
        for case in DEFAULT_CASES:
            counts[case.group] += 1
        assert counts == {
            AUDIO_SYNC_GROUP: 5,
            AUDIO_ASYNC_GROUP: 5,
            VIDEO_SYNC_GROUP: 9,
            VIDEO_ASYNC_GROUP: 9,
        }

    def test_mode_matches_group(self) -> None:
        for case in DEFAULT_CASES:
            assert case.async_mode == ("Async" in case.group)

    def test_audio_cases_use_default_codec(self) -> None:
        audio = [c for c in DEFAULT_CASES if c.group.startswith("Audio")]
        assert all(c.codec_name == "" for c in audio)
        assert "bbb_44100hz_2ch_128kbps_aac_30sec.mp4" in {c.input_file for c in audio}

    def test_named_video_encoders(self) -> None:
        named = {
            c.codec_name
            for c in DEFAULT_CASES
            if c.group == VIDEO_SYNC_GROUP and c.codec_name
        }
        assert named == {"libvpx-vp9", "libvpx", "mpeg4", "h263", "libx264", "libx265"}


class TestSelectCases:
    """Tests for select_cases."""

    def test_no_groups_keeps_everything(self) -> None:
        assert select_cases(DEFAULT_CASES) == list(DEFAULT_CASES)

    def test_filters_by_group(self) -> None:
        selected = select_cases(DEFAULT_CASES, [AUDIO_ASYNC_GROUP])
        assert len(selected) == 5
        assert all(c.group == AUDIO_ASYNC_GROUP for c in selected)

    def test_unknown_group_raises(self) -> None:
        with pytest.raises(CaseFileError, match="NoSuchGroup"):
            select_cases(DEFAULT_CASES, ["NoSuchGroup"])


class TestLoadCases:
    """Tests for YAML case file loading."""

    def test_load_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cases.yaml"
        path.write_text(
            "cases:\n"
            "  - input: clip.mp4\n"
            "  - input: clip.webm\n"
            "    codec: libvpx\n"
            "    async: true\n"
            "    group: smoke\n"
        )

        cases = load_cases(path)

        assert cases == [
            BenchmarkCase("clip.mp4", "", False, "custom"),
            BenchmarkCase("clip.webm", "libvpx", True, "smoke"),
        ]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CaseFileError, match="Cannot read"):
            load_cases(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "cases.yaml"
        path.write_text("cases: [unclosed\n")
        with pytest.raises(CaseFileError, match="Invalid YAML"):
            load_cases(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cases.yaml"
        path.write_text("")
        with pytest.raises(CaseFileError, match="empty"):
            load_cases(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "cases.yaml"
        path.write_text("- input: clip.mp4\n")
        with pytest.raises(CaseFileError, match="mapping"):
            load_cases(path)

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(CaseFileError, match="cases.0.speed"):
            load_cases_from_dict({"cases": [{"input": "a.mp4", "speed": "fast"}]})

    def test_missing_input_rejected(self) -> None:
        with pytest.raises(CaseFileError, match="cases.0.input"):
            load_cases_from_dict({"cases": [{"codec": "aac"}]})

    def test_empty_case_list_rejected(self) -> None:
        with pytest.raises(CaseFileError, match="cases"):
            load_cases_from_dict({"cases": []})
