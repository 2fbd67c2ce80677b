"""
Recursos de captura do formulário: ditado por voz e câmera.

Cada sessão é dona do seu dispositivo (nada global). A disponibilidade é
verificada na construção: sem dispositivo, `available` é False e a
interface deve esconder/desabilitar o botão em vez de falhar.
"""

import logging
from collections.abc import Callable
from typing import Protocol

from intake.core.exceptions import ValidationException
from intake.forms.draft import get_path, set_path

logger = logging.getLogger(__name__)


class SpeechRecognizer(Protocol):
    async def open(self, language: str) -> None: ...

    async def listen(self) -> str: ...

    async def close(self) -> None: ...


class CameraDevice(Protocol):
    async def open(self) -> None: ...

    async def snapshot(self) -> str: ...

    async def close(self) -> None: ...


class _CaptureSession:
    unavailable_message = "Recurso de captura indisponível"

    def __init__(self, device) -> None:
        self.device = device
        self.active = False

    @property
    def available(self) -> bool:
        return self.device is not None

    def _require(self, active: bool = True) -> None:
        if not self.available:
            raise ValidationException(self.unavailable_message)
        if active and not self.active:
            raise ValidationException("Captura não iniciada")

    async def _open(self) -> None:
        await self.device.open()

    async def start(self) -> None:
        self._require(active=False)
        if self.active:
            return
        await self._open()
        self.active = True
        logger.debug(f"{type(self).__name__} iniciada")

    async def stop(self) -> None:
        """Libera o dispositivo. Pode ser chamado mais de uma vez."""
        if not self.active:
            return
        self.active = False
        await self.device.close()
        logger.debug(f"{type(self).__name__} encerrada")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


class DictationSession(_CaptureSession):
    """
    Ditado: cada trecho reconhecido é repassado a `on_text` (por exemplo,
    anexado a um campo de texto do rascunho).
    """

    unavailable_message = "Reconhecimento de voz não suportado neste ambiente"

    def __init__(
        self,
        recognizer: SpeechRecognizer | None,
        on_text: Callable[[str], None],
        language: str = "pt-BR",
    ) -> None:
        super().__init__(recognizer)
        self.on_text = on_text
        self.language = language

    async def _open(self) -> None:
        await self.device.open(self.language)

    async def listen_once(self) -> str:
        self._require()
        text = (await self.device.listen()).strip()
        if text:
            self.on_text(text)
        return text


class CameraSession(_CaptureSession):
    unavailable_message = "Câmera não disponível neste ambiente"

    async def capture(self) -> str:
        """Retorna a imagem capturada como data URL."""
        self._require()
        return await self.device.snapshot()


def append_text(draft: dict, path: str) -> Callable[[str], None]:
    """Callback de ditado que anexa o texto ao campo indicado do rascunho."""
    def _append(text: str) -> None:
        current = get_path(draft, path) or ""
        set_path(draft, path, f"{current} {text}".strip())

    return _append
