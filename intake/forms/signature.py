"""
Captura de assinatura com state machine.

Estados e transições:
    unsigned → awaiting_drawing | awaiting_external   (escolha do método)
    awaiting_drawing ⇄ awaiting_external              (troca antes de concluir)
    awaiting_drawing → signed                          (desenho salvo)
    awaiting_external → signed                         (token recebido)
    qualquer estado → unsigned                         (change_method)

Trocar de método antes de concluir descarta o desenho em andamento.
"""

import enum
import logging
import uuid
from collections.abc import Awaitable, Callable

from intake.core.clock import utcnow
from intake.core.exceptions import ValidationException
from intake.models.anamnesis import SignatureMethod
from intake.schemas.anamnesis import Signature

logger = logging.getLogger(__name__)

ExternalSignatureProvider = Callable[[], Awaitable[str]]


class SignatureState(str, enum.Enum):
    UNSIGNED = "unsigned"
    AWAITING_DRAWING = "awaiting_drawing"
    AWAITING_EXTERNAL = "awaiting_external"
    SIGNED = "signed"


VALID_TRANSITIONS: dict[SignatureState, list[SignatureState]] = {
    SignatureState.UNSIGNED: [
        SignatureState.AWAITING_DRAWING,
        SignatureState.AWAITING_EXTERNAL,
    ],
    SignatureState.AWAITING_DRAWING: [
        SignatureState.AWAITING_EXTERNAL,
        SignatureState.SIGNED,
    ],
    SignatureState.AWAITING_EXTERNAL: [
        SignatureState.AWAITING_DRAWING,
        SignatureState.SIGNED,
    ],
    # Terminal: só sai via change_method()
    SignatureState.SIGNED: [],
}

_AWAITING = {
    SignatureMethod.DRAWING: SignatureState.AWAITING_DRAWING,
    SignatureMethod.GOVBR: SignatureState.AWAITING_EXTERNAL,
}


async def local_token_provider() -> str:
    """Provedor local: gera um token opaco no lugar da integração gov.br."""
    return f"govbr-{uuid.uuid4().hex}"


class SignatureCapture:
    def __init__(self, provider: ExternalSignatureProvider | None = None) -> None:
        self.provider = provider or local_token_provider
        self.state = SignatureState.UNSIGNED
        self.method: SignatureMethod | None = None
        self.pending_drawing: str | None = None
        self.signature: Signature | None = None

    def _transition(self, new: SignatureState) -> None:
        if new not in VALID_TRANSITIONS[self.state]:
            raise ValidationException(
                f"Transição de assinatura inválida: {self.state.value} → {new.value}"
            )
        self.state = new

    @property
    def is_signed(self) -> bool:
        return self.state == SignatureState.SIGNED

    def choose_method(self, method: SignatureMethod) -> None:
        target = _AWAITING[SignatureMethod(method)]
        if target == self.state:
            return
        self._transition(target)
        self.method = SignatureMethod(method)
        self.pending_drawing = None

    def draw(self, image_data: str) -> None:
        """Atualiza o desenho em andamento (data URL do canvas)."""
        if self.state != SignatureState.AWAITING_DRAWING:
            raise ValidationException("Selecione 'Desenhar Assinatura' antes de desenhar")
        self.pending_drawing = image_data

    def clear(self) -> None:
        if self.state == SignatureState.AWAITING_DRAWING:
            self.pending_drawing = None

    def save_drawing(self) -> Signature:
        if self.state != SignatureState.AWAITING_DRAWING:
            raise ValidationException("Nenhum desenho de assinatura em andamento")
        if not self.pending_drawing:
            raise ValidationException("Assinatura vazia")
        signature = Signature(
            method=SignatureMethod.DRAWING,
            image_data=self.pending_drawing,
            signed_at=utcnow(),
        )
        self._transition(SignatureState.SIGNED)
        self.signature = signature
        self.pending_drawing = None
        return signature

    async def sign_external(self) -> Signature:
        if self.state != SignatureState.AWAITING_EXTERNAL:
            raise ValidationException("Selecione 'Assinar com gov.br' antes de assinar")
        token = await self.provider()
        if not token:
            raise ValidationException("Assinatura digital não retornou token")
        signature = Signature(
            method=SignatureMethod.GOVBR,
            external_token=token,
            signed_at=utcnow(),
        )
        self._transition(SignatureState.SIGNED)
        self.signature = signature
        logger.info("Assinatura digital externa concluída")
        return signature

    def change_method(self) -> None:
        """Volta para unsigned descartando assinatura e desenho."""
        self.state = SignatureState.UNSIGNED
        self.method = None
        self.pending_drawing = None
        self.signature = None

    def restore(self, signature: Signature | None) -> None:
        """Carrega a assinatura de uma ficha salva (edição)."""
        self.change_method()
        if signature is not None:
            self.state = SignatureState.SIGNED
            self.method = signature.method
            self.signature = signature
