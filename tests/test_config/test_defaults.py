"""Tests for package defaults."""

from throttlekit.config.defaults import DEFAULT_CONCURRENCY, get_defaults


class TestDefaults:
    def test_all_keys_present(self):
        defaults = get_defaults()
        assert set(defaults) == {"concurrency", "wait", "leading", "trailing", "shell", "log_level"}

    def test_concurrency_is_positive_int(self):
        assert isinstance(DEFAULT_CONCURRENCY, int)
        assert DEFAULT_CONCURRENCY >= 1

    def test_returns_fresh_dict(self):
        get_defaults()["concurrency"] = 99
        assert get_defaults()["concurrency"] == DEFAULT_CONCURRENCY
