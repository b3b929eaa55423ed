"""Sprite animation files: parsing, storage and per-entity frame stepping."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional

ANIFILE_COUNT = 0x100
ANIMATION_COUNT = 0x400
SPRITEFRAME_COUNT = 0x1000
HITBOX_COUNT = 0x20
HITBOX_DIR_COUNT = 8

ANIMATION_DIRECTORY = "Data/Animations/"

# One full animation step; the timer counts up to this before a frame advances.
FRAME_STEP = 0xF0

SheetRegistrar = Callable[[str], int]
FileReader = Callable[[str], Optional[bytes]]


class AnimationFormatError(ValueError):
    """Raised when animation data is truncated or inconsistent."""


class AnimationLimitError(RuntimeError):
    """Raised when loading would exceed the store's fixed capacities."""


class RotationStyle(IntEnum):
    NONE = 0
    FULL = 1
    DEG45 = 2
    STATIC_FRAMES = 3


@dataclass
class SpriteFrame:
    sprite_x: int = 0
    sprite_y: int = 0
    width: int = 0
    height: int = 0
    pivot_x: int = 0
    pivot_y: int = 0
    sheet_id: int = 0
    hitbox_id: int = 0


@dataclass
class SpriteAnimation:
    name: str = ""
    frame_count: int = 0
    speed: int = 0
    loop_point: int = 0
    rotation_style: int = RotationStyle.NONE
    frames: list[SpriteFrame] = field(default_factory=list)


def _zeros() -> list[int]:
    return [0] * HITBOX_DIR_COUNT


@dataclass
class Hitbox:
    left: list[int] = field(default_factory=_zeros)
    top: list[int] = field(default_factory=_zeros)
    right: list[int] = field(default_factory=_zeros)
    bottom: list[int] = field(default_factory=_zeros)


@dataclass
class AnimationFile:
    file_name: str = ""
    animations: list[SpriteAnimation] = field(default_factory=list)
    hitboxes: list[Hitbox] = field(default_factory=list)

    @property
    def anim_count(self) -> int:
        return len(self.animations)

    @property
    def frame_total(self) -> int:
        return sum(len(anim.frames) for anim in self.animations)


@dataclass
class AnimatedEntity:
    animation: int = 0
    prev_animation: int = 0
    frame: int = 0
    animation_timer: int = 0
    animation_speed: int = 0


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise AnimationFormatError(
                f"unexpected end of animation data at offset {self._pos}"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def signed(self) -> int:
        value = self.byte()
        return value - 0x100 if value >= 0x80 else value

    def string(self) -> str:
        return self.take(self.byte()).decode("latin-1")


def parse_animation_file(data: bytes, register_sheet: SheetRegistrar) -> AnimationFile:
    """Parse binary animation data; ``register_sheet`` maps a sheet path to its id."""
    reader = _Reader(data)

    sheet_ids: list[int] = []
    for _ in range(reader.byte()):
        name = reader.string()
        sheet_ids.append(register_sheet(name) if name else 0)

    result = AnimationFile()
    for _ in range(reader.byte()):
        anim = SpriteAnimation(name=reader.string())
        anim.frame_count = reader.byte()
        anim.speed = reader.byte()
        anim.loop_point = reader.byte()
        anim.rotation_style = reader.byte()

        for _ in range(anim.frame_count):
            sheet_index = reader.byte()
            if sheet_index >= len(sheet_ids):
                raise AnimationFormatError(f"frame refers to unknown sheet {sheet_index}")
            frame = SpriteFrame(sheet_id=sheet_ids[sheet_index], hitbox_id=reader.byte())
            frame.sprite_x = reader.byte()
            frame.sprite_y = reader.byte()
            frame.width = reader.byte()
            frame.height = reader.byte()
            frame.pivot_x = reader.signed()
            frame.pivot_y = reader.signed()
            anim.frames.append(frame)

        # The second half of the frames holds the pre-rotated variants.
        if anim.rotation_style == RotationStyle.STATIC_FRAMES:
            anim.frame_count >>= 1

        result.animations.append(anim)

    for _ in range(reader.byte()):
        hitbox = Hitbox()
        for direction in range(HITBOX_DIR_COUNT):
            hitbox.left[direction] = reader.signed()
            hitbox.top[direction] = reader.signed()
            hitbox.right[direction] = reader.signed()
            hitbox.bottom[direction] = reader.signed()
        result.hitboxes.append(hitbox)

    return result


def process_object_animation(animation: SpriteAnimation, entity: AnimatedEntity) -> None:
    """Advance ``entity``'s animation timer and frame using ``animation``."""
    if entity.animation_speed <= 0:
        entity.animation_timer += animation.speed
    else:
        if entity.animation_speed > FRAME_STEP:
            entity.animation_speed = FRAME_STEP
        entity.animation_timer += entity.animation_speed

    if entity.animation != entity.prev_animation:
        entity.prev_animation = entity.animation
        entity.frame = 0
        entity.animation_timer = 0
        entity.animation_speed = 0

    if entity.animation_timer >= FRAME_STEP:
        entity.animation_timer -= FRAME_STEP
        entity.frame += 1

    if entity.frame >= animation.frame_count:
        entity.frame = animation.loop_point


class AnimationStore:
    """Holds loaded animation files within the engine's fixed capacities."""

    def __init__(self, read_file: FileReader, register_sheet: SheetRegistrar) -> None:
        self._read_file = read_file
        self._register_sheet = register_sheet
        self.files: list[AnimationFile] = []
        self.script_frames: list[SpriteFrame] = []
        self.animation_total = 0
        self.frame_total = 0
        self.hitbox_total = 0

    def load_animation_file(self, file_path: str) -> Optional[AnimationFile]:
        """Read and parse the file at ``file_path``; None if it does not exist."""
        try:
            data = self._read_file(file_path)
        except FileNotFoundError:
            return None
        if data is None:
            return None

        parsed = parse_animation_file(data, self._register_sheet)
        animations = self.animation_total + parsed.anim_count
        frames = self.frame_total + parsed.frame_total
        hitboxes = self.hitbox_total + len(parsed.hitboxes)
        if animations > ANIMATION_COUNT:
            raise AnimationLimitError(f"more than {ANIMATION_COUNT} animations loaded")
        if frames > SPRITEFRAME_COUNT:
            raise AnimationLimitError(f"more than {SPRITEFRAME_COUNT} sprite frames loaded")
        if hitboxes > HITBOX_COUNT:
            raise AnimationLimitError(f"more than {HITBOX_COUNT} hitboxes loaded")

        self.animation_total = animations
        self.frame_total = frames
        self.hitbox_total = hitboxes
        return parsed

    def add_animation_file(self, file_path: str) -> Optional[AnimationFile]:
        """Return the file already loaded under this name, or load and register it."""
        for existing in self.files:
            if existing.file_name == file_path:
                return existing
        if len(self.files) >= ANIFILE_COUNT:
            return None

        entry = self.load_animation_file(ANIMATION_DIRECTORY + file_path) or AnimationFile()
        entry.file_name = file_path
        self.files.append(entry)
        return entry

    def clear(self) -> None:
        self.files.clear()
        self.script_frames.clear()
        self.animation_total = 0
        self.frame_total = 0
        self.hitbox_total = 0

    def default_animation_file(self) -> Optional[AnimationFile]:
        return self.files[0] if self.files else None

    def process(self, animation_file: AnimationFile, entity: AnimatedEntity) -> None:
        """Step ``entity`` through its current animation in ``animation_file``."""
        process_object_animation(animation_file.animations[entity.animation], entity)