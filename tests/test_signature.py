"""
Tests da máquina de estados de captura de assinatura.
"""

import pytest

from intake.core.exceptions import ValidationException
from intake.forms.signature import SignatureCapture, SignatureState


def test_drawing_flow():
    capture = SignatureCapture()
    capture.choose_method("drawing")
    assert capture.state == SignatureState.AWAITING_DRAWING

    capture.draw("data:image/png;base64,AAA")
    signature = capture.save_drawing()

    assert capture.is_signed
    assert signature.image_data == "data:image/png;base64,AAA"
    assert signature.external_token is None
    assert signature.signed_at is not None


def test_switching_method_discards_drawing():
    capture = SignatureCapture()
    capture.choose_method("drawing")
    capture.draw("data:image/png;base64,AAA")

    capture.choose_method("govbr")
    assert capture.state == SignatureState.AWAITING_EXTERNAL
    assert capture.pending_drawing is None

    capture.choose_method("drawing")
    with pytest.raises(ValidationException):
        capture.save_drawing()


def test_clear_empties_pending_drawing():
    capture = SignatureCapture()
    capture.choose_method("drawing")
    capture.draw("data:image/png;base64,AAA")
    capture.clear()

    with pytest.raises(ValidationException):
        capture.save_drawing()
    assert capture.state == SignatureState.AWAITING_DRAWING


async def test_external_flow_uses_provider():
    async def provider() -> str:
        return "token-abc"

    capture = SignatureCapture(provider)
    capture.choose_method("govbr")
    signature = await capture.sign_external()

    assert signature.external_token == "token-abc"
    assert signature.image_data is None
    assert capture.is_signed


async def test_external_without_token_stays_pending():
    async def provider() -> str:
        return ""

    capture = SignatureCapture(provider)
    capture.choose_method("govbr")
    with pytest.raises(ValidationException):
        await capture.sign_external()
    assert capture.state == SignatureState.AWAITING_EXTERNAL


def test_signed_is_terminal_until_change_method():
    capture = SignatureCapture()
    capture.choose_method("drawing")
    capture.draw("data:image/png;base64,AAA")
    capture.save_drawing()

    with pytest.raises(ValidationException):
        capture.choose_method("govbr")
    with pytest.raises(ValidationException):
        capture.draw("data:image/png;base64,BBB")

    capture.change_method()
    assert capture.state == SignatureState.UNSIGNED
    assert capture.signature is None
    capture.choose_method("govbr")
    assert capture.state == SignatureState.AWAITING_EXTERNAL


def test_draw_requires_drawing_method():
    capture = SignatureCapture()
    with pytest.raises(ValidationException):
        capture.draw("data:image/png;base64,AAA")
