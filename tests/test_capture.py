"""
Tests das sessões de captura (ditado e câmera).
"""

import pytest

from intake.capture import CameraSession, DictationSession, append_text
from intake.core.exceptions import ValidationException
from intake.forms.anamnesis_form import empty_draft


class FakeRecognizer:
    def __init__(self, phrases):
        self.phrases = list(phrases)
        self.opened_with = None
        self.closed = False

    async def open(self, language):
        self.opened_with = language

    async def listen(self):
        return self.phrases.pop(0)

    async def close(self):
        self.closed = True


class FakeCamera:
    def __init__(self):
        self.closed = False

    async def open(self):
        pass

    async def snapshot(self):
        return "data:image/jpeg;base64,FFF"

    async def close(self):
        self.closed = True


async def test_dictation_appends_to_draft_field():
    draft = empty_draft()
    recognizer = FakeRecognizer(["Paciente refere dor", "  ", "há dois dias"])
    session = DictationSession(recognizer, append_text(draft, "reports.0.description"))

    async with session:
        for _ in range(3):
            await session.listen_once()

    assert draft["reports"][0]["description"] == "Paciente refere dor há dois dias"
    assert recognizer.opened_with == "pt-BR"
    assert recognizer.closed
    assert session.active is False


async def test_unavailable_dictation_is_disabled():
    session = DictationSession(None, lambda text: None)

    assert session.available is False
    with pytest.raises(ValidationException):
        await session.start()
    await session.stop()


async def test_camera_released_on_error():
    camera = FakeCamera()

    with pytest.raises(RuntimeError):
        async with CameraSession(camera) as session:
            assert await session.capture() == "data:image/jpeg;base64,FFF"
            raise RuntimeError("falha no formulário")

    assert camera.closed


async def test_capture_requires_start():
    session = CameraSession(FakeCamera())
    with pytest.raises(ValidationException):
        await session.capture()
