from __future__ import annotations

from noah.trust.service import INITIAL_TRUST, TrustMeter, admits_uncertainty, challenge_prompt


def test_starts_at_midpoint():
    assert TrustMeter().level == INITIAL_TRUST == 50


def test_uncertain_reply_raises_trust():
    meter = TrustMeter()
    assert meter.on_assistant_reply("Honestly I'm NOT SURE this will work") == 55
    assert meter.on_assistant_reply("Here is the answer") == 55


def test_challenge_and_skeptic_toggle():
    meter = TrustMeter()
    meter.on_challenge()
    assert meter.level == 53
    meter.toggle_skeptic_mode()
    assert meter.skeptic_mode is True
    assert meter.level == 43
    meter.toggle_skeptic_mode()
    assert meter.skeptic_mode is False
    assert meter.level == 33


def test_level_is_clamped():
    assert TrustMeter(level=120).level == 100
    high = TrustMeter(level=99)
    high.on_assistant_reply("uncertain")
    assert high.level == 100
    low = TrustMeter(level=4)
    low.toggle_skeptic_mode()
    assert low.level == 0


def test_helpers():
    assert admits_uncertainty("I am uncertain") is True
    assert admits_uncertainty("") is False
    assert challenge_prompt("42").startswith('I want to challenge your previous response: "42".')
