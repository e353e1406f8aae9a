"""Tests for the command dispatcher."""

from datetime import datetime, time, timedelta

import pytest

from actool.adapters import RemoteRejection, TransportError
from actool.commands import Command, CommandKind, ValidationError, parse_line
from actool.core import DeferredAction

TEN = datetime(2025, 7, 1, 10, 0, 0)


def _armed(minutes: int = 30) -> DeferredAction:
    return DeferredAction().arm(TEN + timedelta(minutes=minutes), f"{minutes} minutes")


class TestTurnOn:
    @pytest.mark.asyncio
    async def test_on_with_minutes_arms_timer(self, dispatcher, gateway, session):
        ok = await dispatcher.dispatch(parse_line("/acon 5"))

        assert ok is True
        assert gateway.command_keys == ["AirOpen"]
        assert session.timer.armed is True
        assert session.timer.target == datetime(2025, 7, 1, 10, 5, 0)
        assert session.timer.description == "5 minutes"

    @pytest.mark.asyncio
    async def test_untimed_on_cancels_pending_timer(self, dispatcher, gateway, session):
        session.timer = _armed()

        ok = await dispatcher.turn_on(0)

        assert ok is True
        assert session.timer.armed is False
        assert gateway.command_keys == ["AirOpen"]

    @pytest.mark.asyncio
    async def test_second_timed_on_replaces_schedule(self, dispatcher, session, clock):
        await dispatcher.turn_on(5)
        clock.advance(minutes=1)
        await dispatcher.turn_on(20)

        assert session.timer.target == datetime(2025, 7, 1, 10, 21, 0)
        assert session.timer.description == "20 minutes"

    @pytest.mark.asyncio
    async def test_submission_carries_operator_and_fan_flag(self, dispatcher, gateway):
        await dispatcher.turn_on(0)

        payload = gateway.submitted[0].to_payload()
        assert payload["studentName"] == "Lin"
        assert payload["deviceFan"]["fanStatus"] == 1

    @pytest.mark.asyncio
    async def test_failed_submit_leaves_timer_untouched(self, dispatcher, gateway, session, output):
        session.timer = _armed()
        gateway.submit_errors.append(RemoteRejection(500, "device offline", status_code=200))

        ok = await dispatcher.turn_on(10)

        assert ok is False
        assert session.timer == _armed()
        assert "device offline" in output.getvalue()

    @pytest.mark.asyncio
    async def test_failed_fetch_skips_submit(self, dispatcher, gateway, session, timeout_error):
        gateway.fetch_errors.append(timeout_error)

        ok = await dispatcher.turn_on(10)

        assert ok is False
        assert gateway.submitted == []
        assert session.timer.armed is False


class TestTurnOff:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("prior", [DeferredAction(), _armed(), _armed(-5)])
    async def test_off_always_disarms(self, dispatcher, gateway, session, prior):
        session.timer = prior

        ok = await dispatcher.dispatch(Command(CommandKind.TURN_OFF))

        assert ok is True
        assert session.timer.armed is False
        assert gateway.command_keys == ["AirClose"]

    @pytest.mark.asyncio
    async def test_failed_off_keeps_timer(self, dispatcher, gateway, session, output):
        session.timer = _armed()
        gateway.submit_errors.append(TransportError("HTTP 503: busy", status_code=503))

        ok = await dispatcher.turn_off()

        assert ok is False
        assert session.timer == _armed()
        assert "HTTP status 503" in output.getvalue()


class TestScheduleAt:
    @pytest.mark.asyncio
    async def test_earlier_time_resolves_to_next_day(self, dispatcher, gateway, session):
        ok = await dispatcher.dispatch(parse_line("/timer 09:00"))

        assert ok is True
        assert gateway.command_keys == ["AirOpen"]
        assert session.timer.target == datetime(2025, 7, 2, 9, 0, 0)
        assert "09:00" in session.timer.description

    @pytest.mark.asyncio
    async def test_later_time_resolves_today(self, dispatcher, session, output):
        await dispatcher.schedule_at(time(22, 15), "22:15")

        assert session.timer.target == datetime(2025, 7, 1, 22, 15, 0)
        assert "12h15m00s" in output.getvalue()

    @pytest.mark.asyncio
    async def test_failed_power_on_does_not_arm(self, dispatcher, gateway, session, timeout_error):
        gateway.fetch_errors.append(timeout_error)

        ok = await dispatcher.schedule_at(time(22, 15), "22:15")

        assert ok is False
        assert session.timer.armed is False


class TestStatus:
    @pytest.mark.asyncio
    async def test_status_renders_device_and_timer(self, dispatcher, gateway, session, output):
        session.timer = _armed(5)

        ok = await dispatcher.show_status()

        text = output.getvalue()
        assert ok is True
        assert gateway.submitted == []
        assert "Building 3" in text
        assert "response  : HTTP 200" in text
        assert "37.50" in text
        assert "00h05m00s" in text

    @pytest.mark.asyncio
    async def test_status_fetch_timeout_is_reported(self, dispatcher, gateway, session, output, timeout_error):
        session.timer = _armed()
        gateway.fetch_errors.append(timeout_error)

        ok = await dispatcher.show_status()

        assert ok is False
        assert "timed out" in output.getvalue()
        assert session.timer == _armed()

    @pytest.mark.asyncio
    async def test_status_without_fan_unit(self, dispatcher, gateway, output):
        gateway.payload["deviceFan"] = None

        await dispatcher.show_status()

        assert "fan unit  : none" in output.getvalue()


class TestFireIfDue:
    @pytest.mark.asyncio
    async def test_not_due_does_nothing(self, dispatcher, gateway, session):
        session.timer = _armed(1)

        assert await dispatcher.fire_if_due() is False
        assert gateway.fetches == []

    @pytest.mark.asyncio
    async def test_due_timer_powers_off_once(self, dispatcher, gateway, session):
        session.timer = _armed(0)

        assert await dispatcher.fire_if_due() is True
        assert await dispatcher.fire_if_due() is False
        assert gateway.command_keys == ["AirClose"]
        assert session.timer.armed is False

    @pytest.mark.asyncio
    async def test_failed_auto_off_still_consumes_timer(self, dispatcher, gateway, session, output, timeout_error):
        session.timer = _armed(0)
        gateway.fetch_errors.append(timeout_error)

        assert await dispatcher.fire_if_due() is True
        assert session.timer.armed is False
        assert "Automatic power off" not in output.getvalue()
        assert "timed out" in output.getvalue()

    @pytest.mark.asyncio
    async def test_unexpected_error_still_consumes_timer(self, dispatcher, gateway, session):
        session.timer = _armed(0)
        gateway.submit_errors.append(KeyError("commandKey"))

        with pytest.raises(KeyError):
            await dispatcher.fire_if_due()

        assert session.timer.armed is False
        assert await dispatcher.fire_if_due() is False
        assert gateway.fetches == ["AC-1001"]


@pytest.mark.asyncio
async def test_help_and_exit_skip_the_gateway(dispatcher, gateway, output):
    assert await dispatcher.dispatch(Command(CommandKind.HELP)) is True
    assert await dispatcher.dispatch(Command(CommandKind.EXIT)) is True

    assert gateway.fetches == []
    assert "/timer <HH:MM>" in output.getvalue()


@pytest.mark.asyncio
async def test_invalid_command_is_reported(dispatcher, gateway, session, output):
    ok = await dispatcher.dispatch(Command(CommandKind.INVALID, text="/fly"))

    assert ok is False
    assert '"/fly"' in output.getvalue()
    assert gateway.fetches == []
    assert session.timer.armed is False


def test_reject_reports_validation_error(dispatcher, output):
    assert dispatcher.reject(ValidationError("/acon: invalid minutes 'abc'")) is False
    assert "invalid minutes" in output.getvalue()
