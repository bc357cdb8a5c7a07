"""Tests for cache and audio file naming."""

from wlx.utils.paths import audio_file_name, dataset_paths, slugify


class TestSlugify:
    def test_basic(self):
        assert slugify("Hello World") == "hello-world"

    def test_keeps_underscores(self):
        assert slugify("audio_007") == "audio_007"

    def test_special_characters(self):
        assert slugify("Wayuu: ¡Audio #1!") == "wayuu-audio-1"

    def test_collapses_dashes(self):
        assert slugify("a---b   c") == "a-b-c"

    def test_truncates_long_strings(self):
        assert len(slugify("a" * 200)) <= 80

    def test_empty_string(self):
        assert slugify("") == ""


class TestAudioFileName:
    def test_deterministic(self):
        assert audio_file_name("audio_007") == "audio_007.wav"
        assert audio_file_name("audio_007") == audio_file_name("audio_007")

    def test_unsafe_id_fallback(self):
        assert audio_file_name("!!!") == "audio.wav"


class TestDatasetPaths:
    def test_layout(self, tmp_path):
        paths = dataset_paths(tmp_path, "dictionary")
        assert paths["dir"] == tmp_path / "dictionary"
        assert paths["data"] == tmp_path / "dictionary" / "entries.json"
        assert paths["metadata"] == tmp_path / "dictionary" / "metadata.json"

    def test_does_not_create(self, tmp_path):
        dataset_paths(tmp_path, "audio")
        assert not (tmp_path / "audio").exists()
