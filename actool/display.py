"""Text rendering for operator-facing output."""

from __future__ import annotations

from .core import CommandReceipt, DeviceSnapshot, FanAbsent, FanUnit

RULE = "=" * 35

INTERACTIVE_HELP = "\n".join(
    [
        RULE,
        "           actool help",
        RULE,
        "Commands:",
        "  /status         - show device details and timer state",
        "  /acon [minutes] - power on; with minutes, power off after that delay",
        "  /acoff          - power off and cancel any pending timer",
        "  /timer <HH:MM>  - power on now and power off at HH:MM (24-hour)",
        "  /help           - show this help",
        "  /exit, /quit    - leave the program",
        RULE,
    ]
)

INTERACTIVE_HINT = "Entering interactive mode. Type /help for the command list."


def render_snapshot(snapshot: DeviceSnapshot, timer_state: str) -> str:
    lines = [
        "== device ==",
        f"response  : HTTP {snapshot.status_code}",
        f"device no : {snapshot.device_no}",
        f"gateway   : {snapshot.gateway_no}",
        f"campus    : {snapshot.campus}",
        f"building  : {snapshot.building}",
        f"floor     : {snapshot.floor}",
        f"room      : {snapshot.room}",
        f"balance   : {snapshot.balance:.2f}",
    ]

    match snapshot.fan:
        case FanUnit() as fan:
            lines.extend(
                [
                    f"power     : {'on' if fan.power_on else 'off'}",
                    f"set temp  : {fan.temperature:g}",
                    f"fan speed : {fan.fan_speed}",
                    f"locked    : {'yes' if fan.locked else 'no'}",
                ]
            )
        case FanAbsent():
            lines.append("fan unit  : none")

    lines.append(f"timer     : {timer_state}")
    lines.append(RULE)
    return "\n".join(lines)


def render_receipt(receipt: CommandReceipt) -> str:
    return "\n".join(
        [
            "== response ==",
            f"status code : {receipt.status_code}",
            f"message id  : {receipt.message_id}",
            f"device no   : {receipt.device_no}",
            RULE,
        ]
    )


def render_failure(action: str, exc: Exception) -> str:
    status_code = getattr(exc, "status_code", 0)
    suffix = f" (HTTP status {status_code})" if status_code else ""
    return f"{action} failed: {exc}{suffix}"
