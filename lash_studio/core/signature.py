import base64
import binascii
import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from PIL import Image, ImageDraw, UnidentifiedImageError


logger = logging.getLogger(__name__)


# =========================
# CONFIGURAÇÃO FIXA DO PAD
# =========================

CANVAS_WIDTH = 400
CANVAS_HEIGHT = 150

STROKE_COLOR = "#BF953F"
STROKE_WIDTH = 2
LINE_CAP = "round"
LINE_JOIN = "round"

IMAGE_FORMAT = "PNG"
DATA_URL_PREFIX = "data:image/png;base64,"


Point = Tuple[float, float]


class PadState(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class PointerSource(str, Enum):
    MOUSE = "mouse"
    TOUCH = "touch"


@dataclass(frozen=True)
class SurfaceRect:
    """Retângulo do canvas na tela (CSS), como o getBoundingClientRect."""

    left: float = 0.0
    top: float = 0.0
    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT


@dataclass(frozen=True)
class PointerEvent:
    source: PointerSource = PointerSource.MOUSE
    client_x: Optional[float] = None
    client_y: Optional[float] = None
    touches: Tuple[Point, ...] = ()

    @classmethod
    def mouse(cls, x: float, y: float) -> "PointerEvent":
        return cls(PointerSource.MOUSE, x, y)

    @classmethod
    def touch(cls, x: float, y: float) -> "PointerEvent":
        return cls(PointerSource.TOUCH, touches=((x, y),))

    def client_point(self) -> Optional[Point]:
        if self.source == PointerSource.TOUCH:
            return self.touches[0] if self.touches else None
        if self.client_x is None or self.client_y is None:
            return None
        return (self.client_x, self.client_y)


class SignaturePad:
    """Superfície de assinatura à mão livre (mouse ou toque).

    Idle -> Drawing no pointer_down; cada pointer_move desenha na hora o
    segmento desde o último ponto; pointer_up / pointer_leave / touch_end
    voltam para Idle e entregam o PNG serializado ao ``on_save``.
    ``clear`` apaga tudo e entrega "" (sem assinatura). Eventos fora de
    hora são ignorados, nunca levantam exceção.
    """

    def __init__(
        self,
        on_save: Callable[[str], None],
        rect: Optional[SurfaceRect] = None,
        on_clear: Optional[Callable[[], None]] = None,
    ):
        rect = rect or SurfaceRect()
        if rect.width <= 0 or rect.height <= 0:
            raise ValueError("O retângulo do canvas precisa ter largura e altura positivas")

        self.on_save = on_save
        self.on_clear = on_clear
        self.rect = rect

        # tamanho intrínseco fixo; o tamanho exibido (CSS) só afeta o mapeamento
        self.width = CANVAS_WIDTH
        self.height = CANVAS_HEIGHT
        self.stroke_width = STROKE_WIDTH

        self.state = PadState.IDLE
        self.has_ink = False
        self._last_point: Optional[Point] = None
        self._reset_surface()

    def _reset_surface(self) -> None:
        self._image = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        self._canvas = ImageDraw.Draw(self._image)

    def _inside(self, client: Point) -> bool:
        x, y = client
        return (
            self.rect.left <= x <= self.rect.left + self.rect.width
            and self.rect.top <= y <= self.rect.top + self.rect.height
        )

    def _to_surface(self, event: PointerEvent) -> Optional[Point]:
        client = event.client_point()
        if client is None:
            return None
        scale_x = self.width / self.rect.width
        scale_y = self.height / self.rect.height
        return (
            (client[0] - self.rect.left) * scale_x,
            (client[1] - self.rect.top) * scale_y,
        )

    def _draw_segment(self, start: Point, end: Point) -> None:
        self._canvas.line([start, end], fill=STROKE_COLOR, width=self.stroke_width, joint="curve")

        # pontas arredondadas (lineCap round)
        radius = self.stroke_width / 2
        if radius >= 1:
            for x, y in (start, end):
                self._canvas.ellipse(
                    [x - radius, y - radius, x + radius, y + radius],
                    fill=STROKE_COLOR,
                )
        self.has_ink = True

    # =========================
    # EVENTOS
    # =========================

    def pointer_down(self, event: PointerEvent) -> None:
        client = event.client_point()
        if client is None or not self._inside(client):
            return
        self._last_point = self._to_surface(event)
        self.state = PadState.DRAWING

    def pointer_move(self, event: PointerEvent) -> bool:
        """Retorna True quando o scroll/pan padrão deve ser bloqueado.

        Só bloqueia toque durante o traço; fora do traço a página rola normal.
        """
        if self.state != PadState.DRAWING:
            return False

        point = self._to_surface(event)
        if point is None:
            return False

        self._draw_segment(self._last_point, point)
        self._last_point = point
        return event.source == PointerSource.TOUCH

    def pointer_up(self) -> None:
        self._finish_stroke()

    def pointer_leave(self) -> None:
        # o traço parcial fica; só encerra o gesto
        self._finish_stroke()

    def touch_end(self) -> None:
        self._finish_stroke()

    def _finish_stroke(self) -> None:
        if self.state != PadState.DRAWING:
            return
        self.state = PadState.IDLE
        self._last_point = None
        self.on_save(self.to_data_url())

    def clear(self) -> None:
        self._reset_surface()
        self.state = PadState.IDLE
        self._last_point = None
        self.has_ink = False
        self.on_save("")
        if self.on_clear:
            self.on_clear()

    def to_data_url(self) -> str:
        buffer = io.BytesIO()
        self._image.save(buffer, format=IMAGE_FORMAT)
        return DATA_URL_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")


# =========================
# REPLAY DE EVENTOS (API)
# =========================

_PRESS_EVENTS = {"mousedown": PointerSource.MOUSE, "touchstart": PointerSource.TOUCH}
_MOVE_EVENTS = {"mousemove": PointerSource.MOUSE, "touchmove": PointerSource.TOUCH}


def _pointer_event(source: PointerSource, raw: Dict) -> PointerEvent:
    x, y = raw.get("client_x"), raw.get("client_y")
    if source == PointerSource.TOUCH:
        if x is None or y is None:
            return PointerEvent(PointerSource.TOUCH)
        return PointerEvent.touch(x, y)
    return PointerEvent(PointerSource.MOUSE, x, y)


def replay(
    events: Iterable[Dict],
    rect: Optional[SurfaceRect] = None,
) -> str:
    """Reproduz uma sequência de eventos do navegador e devolve o último valor salvo."""
    saved: List[str] = []
    pad = SignaturePad(saved.append, rect=rect)

    for raw in events:
        kind = raw.get("type")
        if kind in _PRESS_EVENTS:
            pad.pointer_down(_pointer_event(_PRESS_EVENTS[kind], raw))
        elif kind in _MOVE_EVENTS:
            pad.pointer_move(_pointer_event(_MOVE_EVENTS[kind], raw))
        elif kind == "mouseleave":
            pad.pointer_leave()
        elif kind == "touchend":
            pad.touch_end()
        elif kind == "mouseup":
            pad.pointer_up()
        elif kind == "clear":
            pad.clear()
        else:
            raise ValueError(f"Evento de assinatura desconhecido: {kind}")

    return saved[-1] if saved else ""


def is_signature_data_url(value: str) -> bool:
    if not value.startswith(DATA_URL_PREFIX):
        return False
    try:
        raw = base64.b64decode(value[len(DATA_URL_PREFIX):], validate=True)
        with Image.open(io.BytesIO(raw)) as image:
            image.verify()
            return image.format == IMAGE_FORMAT
    except (binascii.Error, ValueError, UnidentifiedImageError, OSError, SyntaxError):
        logger.debug("Assinatura recebida não é um PNG válido")
        return False
