# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the plugin pipeline and the logging plugin."""

import logging

import pytest
from pydantic import ValidationError

# Import to trigger plugin registration
import pout.plugins.logging  # noqa: F401
from pout import Router
from pout.plugins._base_plugin import BasePlugin  # Not public API


class DummyLogger:
    name = "dummy"

    def __init__(self):
        self.records = []

    def log(self, level, message):
        self.records.append((level, message))

    @property
    def messages(self):
        return [message for _, message in self.records]


class CapturePlugin(BasePlugin):
    plugin_code = "capture"
    plugin_description = "Captures calls for testing"

    def __init__(self, router, **config):
        super().__init__(router, **config)
        self.calls = []

    def configure(self, enabled: bool = True, tag: str = ""):
        pass

    def on_register(self, entry):
        entry.metadata["capture"] = True

    def wrap_handler(self, entry, call_next):
        def wrapper(ctx, next_):
            tag = self.configuration(entry.name).get("tag", "")
            self.calls.append((entry.name, ctx.path, tag))
            return call_next(ctx, next_)

        return wrapper

    def describe(self, entry):
        return {"seen": len(self.calls)}


Router.register_plugin(CapturePlugin)


def show_user(ctx, next_):
    ctx.shown = ctx.params["id"]


def pass_on(ctx, next_):
    next_()


def _logged_router(**config):
    router = Router("app").plug("logging", **config)
    dummy = DummyLogger()
    router.logging._logger = dummy  # type: ignore[attr-defined]
    return router, dummy


# ---------------------------------------------------------------------------
# Logging plugin
# ---------------------------------------------------------------------------
def test_logging_plugin_reports_match_and_claim():
    router, dummy = _logged_router()
    router.register("/user/:id", show_user)

    ctx = router.dispatch("/user/1")

    assert ctx.shown == "1"
    assert dummy.messages[0] == (
        "show_user matched /user/1 on '/user/:id' with Params({'id': '1'}, positional=[])"
    )
    assert dummy.messages[1].startswith("show_user claimed /user/1 (")
    assert len(dummy.records) == 2
    assert all(level == logging.INFO for level, _ in dummy.records)


def test_logging_plugin_reports_passed_handlers():
    router, dummy = _logged_router(before=False)
    router.register("/user/:id", pass_on, show_user)

    ctx = router.dispatch("/user/2")

    assert ctx.shown == "2"
    assert dummy.messages[0].startswith("pass_on passed /user/2 (")
    assert dummy.messages[1].startswith("show_user claimed /user/2 (")


def test_logging_plugin_only_logs_handlers_that_run():
    router, dummy = _logged_router()
    router.register("/other", pass_on)
    router.register("/user/:id", show_user)

    router.dispatch("/user/3")

    assert all(message.startswith("show_user") for message in dummy.messages)


def test_logging_forwarding_keeps_the_chain_going():
    router, dummy = _logged_router(after=False)
    router.register("*", pass_on)
    router.register("*", pass_on, name="second")
    router.register("/user/:id", show_user)

    ctx = router.dispatch("/user/4")

    assert ctx.shown == "4"
    assert [message.split()[0] for message in dummy.messages] == [
        "pass_on",
        "second",
        "show_user",
    ]


def test_logging_options_per_registration():
    router, dummy = _logged_router()
    router.register("/user/:id", show_user, logging_before=False)

    router.dispatch("/user/5")

    assert len(dummy.records) == 1
    assert dummy.messages[0].startswith("show_user claimed")
    assert router.logging.configuration("show_user")["before"] is False
    assert "before" not in router.logging.configuration()


def test_logging_options_stored_before_plug():
    router = Router("app")
    router.register("/user/:id", show_user, logging_after=False)
    router.plug("logging")
    dummy = DummyLogger()
    router.logging._logger = dummy  # type: ignore[attr-defined]

    router.dispatch("/user/6")

    assert len(dummy.records) == 1
    assert dummy.messages[0].startswith("show_user matched /user/6")


def test_logging_plugin_plugged_after_registration_wraps_handlers():
    router = Router("app")
    router.register("/user/:id", show_user)
    router.plug("logging", before=False)
    dummy = DummyLogger()
    router.logging._logger = dummy  # type: ignore[attr-defined]

    router.dispatch("/user/7")

    assert len(dummy.records) == 1


def test_logging_configure_targets_several_handlers():
    router, dummy = _logged_router()
    router.register("/a", pass_on, name="a")
    router.register("/b", show_user, name="b")
    router.logging.configure(_target="a, b", before=False, level=logging.DEBUG)

    assert router.logging.configuration("a")["before"] is False
    assert router.logging.configuration("b")["level"] == logging.DEBUG
    assert "before" not in router.logging.configuration()

    router.dispatch("/b")
    assert dummy.records[0][0] == logging.DEBUG


def test_logging_print_sink(capsys):
    router = Router("app").plug("logging", print=True, after=False)
    router.register("/user/:id", show_user)

    router.dispatch("/user/8")

    assert capsys.readouterr().out.startswith("show_user matched /user/8 on '/user/:id'")


def test_logging_uses_pout_logger(caplog):
    router = Router("app").plug("logging", before=False)
    router.register("/user/:id", show_user)

    with caplog.at_level(logging.INFO, logger="pout"):
        router.dispatch("/user/9")

    assert caplog.records[0].name == "pout"
    assert caplog.messages[0].startswith("show_user claimed /user/9 (")


def test_logging_config_is_validated():
    router = Router("app").plug("logging")
    with pytest.raises(ValidationError):
        router.logging.configure(unknown_option=True)
    with pytest.raises(ValidationError):
        router.logging.configure(level="loud")
    assert "level" not in router.logging.configuration()


def test_disable_plugin_for_handler():
    router, dummy = _logged_router()
    router.register("/user/:id", show_user)
    router.set_plugin_enabled("show_user", "logging", False)

    ctx = router.dispatch("/user/10")

    assert ctx.shown == "10"
    assert dummy.records == []
    assert router.is_plugin_enabled("show_user", "logging") is False
    assert router.is_plugin_enabled("other", "logging") is True


def test_disabled_plugin_still_lets_handler_pass_on():
    router, dummy = _logged_router()
    router.register("*", pass_on)
    router.register("/user/:id", show_user)
    router.set_plugin_enabled("pass_on", "logging", False)

    ctx = router.dispatch("/user/11")

    assert ctx.shown == "11"
    assert all(message.startswith("show_user") for message in dummy.messages)


def test_disable_plugin_through_registration_option():
    router, dummy = _logged_router()
    router.register("/user/:id", show_user, logging_enabled=False)

    router.dispatch("/user/12")

    assert dummy.records == []


def test_switch_overrides_router_wide_setting():
    router, dummy = _logged_router(enabled=False)
    router.register("/user/:id", show_user)
    assert router.is_plugin_enabled("show_user", "logging") is False

    router.set_plugin_enabled("show_user", "logging", True)
    router.dispatch("/user/13")

    assert len(dummy.records) == 2


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
def test_plugins_wrap_in_attachment_order():
    order = []
    router, dummy = _logged_router(after=False)
    router.plug("capture", tag="t")
    dummy.log = lambda level, message: order.append(len(router.capture.calls))
    router.register("/user/:id", show_user)

    router.dispatch("/user/14")

    # logging was plugged first, so it runs before capture records the call
    assert order == [0]
    assert router.capture.calls == [("show_user", "/user/14", "t")]
    assert list(router._plugins) == ["logging", "capture"]


def test_capture_plugin_sees_handler_options():
    router = Router("app").plug("capture", tag="x")
    router.register("/user/:id", show_user, capture_tag="y")

    router.dispatch("/user/15")

    assert router.capture.calls == [("show_user", "/user/15", "y")]


def test_routes_include_plugin_description():
    router = Router("app").plug("capture", tag="x").plug("logging")
    router.register("/user/:id", show_user, capture_tag="y")
    router.set_plugin_enabled("show_user", "logging", False)

    plugins = router.routes()[0]["plugins"]
    assert plugins["capture"]["config"]["tag"] == "y"
    assert plugins["capture"]["metadata"] == {"seen": 0}
    assert plugins["capture"]["enabled"] is True
    assert plugins["logging"]["enabled"] is False
    assert plugins["logging"]["metadata"] == {"logger": "pout"}
    assert router._entries[0].metadata["capture"] is True
    assert router._entries[0].plugins == ["capture", "logging"]


def test_plug_errors():
    router = Router("app").plug("capture")
    with pytest.raises(ValueError):
        router.plug("capture")
    with pytest.raises(ValueError):
        router.plug("missing")
    with pytest.raises(TypeError):
        router.plug(CapturePlugin)  # type: ignore[arg-type]


def test_register_plugin_validation():
    class NoCode(BasePlugin):
        pass

    class OtherCapture(BasePlugin):
        plugin_code = "capture"

    with pytest.raises(TypeError):
        Router.register_plugin(object)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Router.register_plugin(NoCode)
    with pytest.raises(ValueError):
        Router.register_plugin(OtherCapture)
    Router.register_plugin(CapturePlugin)


def test_plugin_without_own_configure_stores_enabled():
    class Plain(BasePlugin):
        plugin_code = "plain"

    Router.register_plugin(Plain)
    router = Router("app").plug("plain", enabled=False)
    router.register("/a", pass_on)

    assert router.is_plugin_enabled("pass_on", "plain") is False
    with pytest.raises(ValidationError):
        router.plain.configure(tag="x")


def test_missing_plugin_attribute_errors():
    router = Router("app")
    with pytest.raises(AttributeError):
        router.logging  # noqa: B018
    with pytest.raises(AttributeError):
        router.set_plugin_enabled("x", "logging")
    with pytest.raises(AttributeError):
        router.is_plugin_enabled("x", "logging")
