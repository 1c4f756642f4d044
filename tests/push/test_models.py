"""Tests for push request and response models."""

import unittest

from easemob_push.push import (
    Badge,
    ClickAction,
    PushConfig,
    PushMessage,
    PushSingleResult,
    PushStrategy,
    PushSyncResult,
)
from easemob_push.push._models import build_push_payload


class TestPushStrategy(unittest.TestCase):
    """Tests for PushStrategy enum."""

    def test_values(self):
        self.assertEqual([s.value for s in PushStrategy], [0, 1, 2, 3, 4])

    def test_is_an_int(self):
        self.assertEqual(PushStrategy.EASEMOB_ONLY, 1)


class TestPushMessagePayload(unittest.TestCase):
    """Tests for PushMessage.to_api_payload()."""

    def test_minimal_message_keeps_title_and_content(self):
        self.assertEqual(PushMessage().to_api_payload(), {"title": "", "content": ""})

    def test_empty_optional_fields_are_omitted(self):
        payload = PushMessage(title="Hi", content="There", ext={}).to_api_payload()
        self.assertNotIn("ext", payload)
        self.assertNotIn("config", payload)

    def test_full_message(self):
        message = PushMessage(
            title="New order",
            content="Order #1024 was shipped",
            ext={"order_id": "1024"},
            config=PushConfig(
                click_action=ClickAction(url="https://example.com/orders/1024"),
                badge=Badge(add_num=1, activity="com.example.MainActivity"),
            ),
        )

        self.assertEqual(
            message.to_api_payload(),
            {
                "title": "New order",
                "content": "Order #1024 was shipped",
                "ext": {"order_id": "1024"},
                "config": {
                    "clickAction": {"url": "https://example.com/orders/1024"},
                    "badge": {"addNum": 1, "activity": "com.example.MainActivity"},
                },
            },
        )

    def test_click_action_fields(self):
        action = ClickAction(url="u", action="a", activity="x")
        self.assertEqual(action.to_api_payload(), {"url": "u", "action": "a", "activity": "x"})

    def test_badge_zero_values_are_omitted(self):
        self.assertEqual(Badge(add_num=0, set_num=5).to_api_payload(), {"setNum": 5})

    def test_empty_config_sections_are_sent_as_objects(self):
        config = PushConfig(click_action=ClickAction())
        self.assertEqual(config.to_api_payload(), {"clickAction": {}})


class TestBuildPushPayload(unittest.TestCase):
    """Tests for build_push_payload()."""

    def test_sync_payload_has_no_targets(self):
        payload = build_push_payload(PushStrategy.EASEMOB_ONLY, PushMessage(title="t", content="c"))
        self.assertEqual(payload, {"strategy": 1, "pushMessage": {"title": "t", "content": "c"}})

    def test_single_payload_has_targets(self):
        payload = build_push_payload(0, PushMessage(), targets=["u1", "u2"])
        self.assertEqual(payload["targets"], ["u1", "u2"])
        self.assertEqual(payload["strategy"], 0)


class TestResults(unittest.TestCase):
    """Tests for response result parsing."""

    def test_sync_result_from_api(self):
        result = PushSyncResult.from_api({
            "pushStatus": "SUCCESS",
            "data": {"result": "0", "msg_id": ["1028442084794698652"]},
        })

        self.assertTrue(result.is_success())
        self.assertEqual(result.result, "0")
        self.assertEqual(result.msg_ids, ["1028442084794698652"])

    def test_sync_result_without_data(self):
        result = PushSyncResult.from_api({"pushStatus": "FAIL"})

        self.assertFalse(result.is_success())
        self.assertIsNone(result.result)
        self.assertEqual(result.msg_ids, [])

    def test_sync_result_with_a_single_msg_id_string(self):
        result = PushSyncResult.from_api({
            "pushStatus": "SUCCESS",
            "data": {"result": "0", "msg_id": "1028442084794698652"},
        })

        self.assertEqual(result.msg_ids, ["1028442084794698652"])

    def test_single_result_from_api(self):
        result = PushSingleResult.from_api({"pushStatus": "ASYNC_SUCCESS", "data": "ok", "desc": "queued"})

        self.assertTrue(result.is_success())
        self.assertEqual(result.data, "ok")
        self.assertEqual(result.desc, "queued")


if __name__ == "__main__":
    unittest.main()
