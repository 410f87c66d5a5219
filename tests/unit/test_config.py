# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Tests for ClientOptions defaults and validation."""

import pytest

from typed_http_client.config import DEFAULT_HANDLER_LIFETIME, ClientOptions


class TestClientOptionsDefaults:
    def test_defaults(self):
        options = ClientOptions(base_url="https://api.test")
        assert options.headers is None
        assert options.timeout is None
        assert options.handler_lifetime == DEFAULT_HANDLER_LIFETIME == 300.0
        assert options.retry_count == 0
        assert options.backoff_base == 2.0
        assert options.retry_on_not_found is True
        assert options.metrics_enabled is False
        assert options.keep_base_path is False


class TestClientOptionsValidation:
    @pytest.mark.parametrize(
        "base_url", ["api.test", "/relative/path", "ftp://files.test", ""]
    )
    def test_rejects_non_http_base_url(self, base_url):
        with pytest.raises(ValueError, match="base_url must be an absolute"):
            ClientOptions(base_url=base_url)

    def test_accepts_base_path(self):
        options = ClientOptions(base_url="http://localhost:8080/api/v1")
        assert options.base_url.endswith("/api/v1")

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_rejects_non_positive_timeout(self, timeout):
        with pytest.raises(ValueError, match="timeout must be positive"):
            ClientOptions(base_url="https://api.test", timeout=timeout)

    def test_rejects_non_positive_handler_lifetime(self):
        with pytest.raises(ValueError, match="handler_lifetime must be positive"):
            ClientOptions(base_url="https://api.test", handler_lifetime=0)

    def test_rejects_negative_retry_count(self):
        with pytest.raises(ValueError, match="retry_count must be non-negative"):
            ClientOptions(base_url="https://api.test", retry_count=-1)

    def test_rejects_backoff_below_one(self):
        with pytest.raises(ValueError, match="backoff_base must be at least 1.0"):
            ClientOptions(base_url="https://api.test", backoff_base=0.5)
