"""Tests for global configuration module."""

import os
import unittest
from unittest.mock import patch

from easemob_push._config import (
    EASEMOB,
    AppConfig,
    AuthConfig,
    ConfigEnvVarError,
    ConfigValidationError,
    EasemobConfig,
    EnvVars,
    HttpConfig,
    RateLimitConfig,
)


class TestDefaults(unittest.TestCase):
    """Tests for default configuration values."""

    def setUp(self):
        EASEMOB.reset()

    def tearDown(self):
        EASEMOB.reset()

    def test_rate_limit_defaults(self):
        """Should default to the push endpoints' quota of 1 call per second."""
        self.assertEqual(EASEMOB.config.rate_limit.rate, 1)
        self.assertEqual(EASEMOB.config.rate_limit.interval, 1.0)
        self.assertIsNone(EASEMOB.config.rate_limit.max_wait_time)

    def test_http_defaults(self):
        self.assertEqual(EASEMOB.config.http.request_timeout, 30.0)

    def test_auth_defaults(self):
        self.assertIsNone(EASEMOB.config.auth.client_id)
        self.assertIsNone(EASEMOB.config.auth.client_secret)
        self.assertEqual(EASEMOB.config.auth.token_ttl, 0)
        self.assertFalse(EASEMOB.config.auth.has_credentials())

    def test_app_defaults(self):
        self.assertIsNone(EASEMOB.config.app.host)
        self.assertFalse(EASEMOB.config.app.is_complete())


class TestEasemobConfigure(unittest.TestCase):
    """Tests for EASEMOB.configure() method."""

    def setUp(self):
        EASEMOB.reset()

    def tearDown(self):
        EASEMOB.reset()

    def test_configure_app_and_auth(self):
        EASEMOB.configure(
            app={"host": "a1.easemob.com", "org_name": "1122", "app_name": "demo"},
            auth={"client_id": "my-id", "client_secret": "my-secret"},
        )
        self.assertTrue(EASEMOB.config.app.is_complete())
        self.assertTrue(EASEMOB.config.auth.has_credentials())

    def test_configure_partial_auth(self):
        EASEMOB.configure(auth={"client_id": "my-id"})
        self.assertFalse(EASEMOB.config.auth.has_credentials())  # Need both

    def test_configure_rate_limit_keeps_other_defaults(self):
        EASEMOB.configure(rate_limit={"rate": 10})
        self.assertEqual(EASEMOB.config.rate_limit.rate, 10)
        self.assertEqual(EASEMOB.config.rate_limit.interval, 1.0)

    def test_configure_returns_instance(self):
        result = EASEMOB.configure(http={"request_timeout": 5.0})
        self.assertIsInstance(result, EasemobConfig)
        self.assertIs(result, EASEMOB.config)

    def test_configure_rejects_unknown_fields(self):
        with self.assertRaises(ValueError) as context:
            EASEMOB.configure(rate_limit={"max_requests": 10})
        self.assertIn("Unknown config fields", str(context.exception))

    def test_configure_validates(self):
        with self.assertRaises(ConfigValidationError) as context:
            EASEMOB.configure(rate_limit={"rate": -1})
        self.assertEqual(context.exception.section, "rate_limit")
        self.assertEqual(context.exception.field, "rate")

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_RATE": "20"})
    def test_env_vars_fill_fields_not_configured(self):
        EASEMOB.configure(rate_limit={"interval": 2.0})
        self.assertEqual(EASEMOB.config.rate_limit.rate, 20)
        self.assertEqual(EASEMOB.config.rate_limit.interval, 2.0)

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_RATE": "20"})
    def test_configure_wins_over_env_vars(self):
        EASEMOB.configure(rate_limit={"rate": 5})
        self.assertEqual(EASEMOB.config.rate_limit.rate, 5)

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_RATE": "20"})
    def test_env_vars_ignored_when_not_allowed(self):
        EASEMOB.configure(rate_limit={"interval": 2.0}, allow_env_override=False)
        self.assertEqual(EASEMOB.config.rate_limit.rate, 1)

    def test_repr_hides_client_secret(self):
        EASEMOB.configure(auth={"client_id": "my-id", "client_secret": "my-secret"})
        self.assertIn("my-id", repr(EASEMOB))
        self.assertNotIn("my-secret", repr(EASEMOB))


class TestEnvVars(unittest.TestCase):
    """Tests for environment variable override."""

    def setUp(self):
        EASEMOB.reset()

    def tearDown(self):
        EASEMOB.reset()

    @patch.dict(os.environ, {
        "EASEMOB_APP_HOST": "a1.easemob.com",
        "EASEMOB_APP_ORG_NAME": "1122",
        "EASEMOB_APP_APP_NAME": "demo",
    })
    def test_app_env_vars(self):
        EASEMOB.reset()  # Re-read env vars
        self.assertEqual(EASEMOB.config.app.host, "a1.easemob.com")
        self.assertEqual(EASEMOB.config.app.org_name, "1122")
        self.assertEqual(EASEMOB.config.app.app_name, "demo")

    @patch.dict(os.environ, {"EASEMOB_AUTH_CLIENT_ID": "env-id", "EASEMOB_AUTH_CLIENT_SECRET": "env-secret"})
    def test_auth_env_vars(self):
        EASEMOB.reset()
        self.assertTrue(EASEMOB.config.auth.has_credentials())

    @patch.dict(os.environ, {"EASEMOB_AUTH_TOKEN_TTL": "7200"})
    def test_int_conversion(self):
        EASEMOB.reset()
        self.assertEqual(EASEMOB.config.auth.token_ttl, 7200)

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_INTERVAL": "0.5", "EASEMOB_HTTP_REQUEST_TIMEOUT": "12.5"})
    def test_float_conversion(self):
        EASEMOB.reset()
        self.assertEqual(EASEMOB.config.rate_limit.interval, 0.5)
        self.assertEqual(EASEMOB.config.http.request_timeout, 12.5)

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_MAX_WAIT_TIME": "2.5"})
    def test_max_wait_time_env_var(self):
        EASEMOB.reset()
        self.assertEqual(EASEMOB.config.rate_limit.max_wait_time, 2.5)

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_MAX_WAIT_TIME": "unlimited"})
    def test_max_wait_time_unlimited_env_var(self):
        EASEMOB.reset()
        self.assertIsNone(EASEMOB.config.rate_limit.max_wait_time)

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_RATE": "lots"})
    def test_invalid_env_var_fails(self):
        with self.assertRaises(ConfigEnvVarError) as context:
            EASEMOB.reset()
        self.assertEqual(context.exception.env_var, "EASEMOB_RATE_LIMIT_RATE")
        self.assertIn("expected int", str(context.exception))

    @patch.dict(os.environ, {"EASEMOB_RATE_LIMIT_RATE": ""})
    def test_empty_env_var_is_ignored(self):
        EASEMOB.reset()
        self.assertEqual(EASEMOB.config.rate_limit.rate, 1)


class TestEnvVarsHelper(unittest.TestCase):
    """Tests for EnvVars.get()."""

    def test_unset_returns_none(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(EnvVars.get("EASEMOB_UNDEFINED"))

    @patch.dict(os.environ, {"EASEMOB_FLAG": "yes"})
    def test_bool_conversion(self):
        self.assertTrue(EnvVars.get("EASEMOB_FLAG", type_hint=bool))

    @patch.dict(os.environ, {"EASEMOB_VALUE": "abc"})
    def test_custom_converter(self):
        self.assertEqual(EnvVars.get("EASEMOB_VALUE", converter=str.upper), "ABC")


class TestSectionValidation(unittest.TestCase):
    """Tests for per-section validation."""

    def test_app_rejects_slash_in_names(self):
        with self.assertRaises(ConfigValidationError):
            AppConfig(org_name="a/b").validate()

    def test_app_rejects_bad_scheme(self):
        with self.assertRaises(ConfigValidationError):
            AppConfig(host="ftp://a1.easemob.com").validate()

    def test_app_accepts_host_or_url(self):
        AppConfig(host="a1.easemob.com").validate()
        AppConfig(host="https://a1.easemob.com").validate()

    def test_auth_rejects_empty_strings(self):
        with self.assertRaises(ConfigValidationError):
            AuthConfig(client_id="").validate()
        with self.assertRaises(ConfigValidationError):
            AuthConfig(client_secret="").validate()

    def test_auth_rejects_negative_ttl(self):
        with self.assertRaises(ConfigValidationError):
            AuthConfig(token_ttl=-1).validate()

    def test_http_rejects_negative_timeout(self):
        with self.assertRaises(ConfigValidationError):
            HttpConfig(request_timeout=-1).validate()

    def test_http_accepts_zero_timeout(self):
        HttpConfig(request_timeout=0).validate()

    def test_rate_limit_accepts_zero_values(self):
        RateLimitConfig(rate=0, interval=0).validate()

    def test_rate_limit_rejects_negative_values(self):
        with self.assertRaises(ConfigValidationError):
            RateLimitConfig(rate=-1).validate()
        with self.assertRaises(ConfigValidationError):
            RateLimitConfig(interval=-0.1).validate()

    def test_rate_limit_rejects_non_positive_max_wait_time(self):
        with self.assertRaises(ConfigValidationError):
            RateLimitConfig(max_wait_time=0).validate()


class TestOverrides(unittest.TestCase):
    """Tests for with_overrides() helpers."""

    def test_none_values_are_ignored(self):
        config = HttpConfig(request_timeout=10.0).with_overrides({"request_timeout": None})
        self.assertEqual(config.request_timeout, 10.0)

    def test_max_wait_time_accepts_none(self):
        config = RateLimitConfig(max_wait_time=5.0).with_overrides({"max_wait_time": None})
        self.assertIsNone(config.max_wait_time)

    def test_max_wait_time_accepts_unlimited_string(self):
        config = RateLimitConfig(max_wait_time=5.0).with_overrides({"max_wait_time": "unlimited"})
        self.assertIsNone(config.max_wait_time)

    def test_overrides_return_new_instance(self):
        original = RateLimitConfig()
        changed = original.with_overrides({"rate": 3})
        self.assertEqual(original.rate, 1)
        self.assertEqual(changed.rate, 3)


if __name__ == "__main__":
    unittest.main()
