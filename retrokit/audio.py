"""Sound effect channels, streamed music and the software mixer that combines them."""

from __future__ import annotations

import io
import logging
import sys
import wave
from array import array
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional

from .mixing import MAX_VOLUME, clamp_to_int16, mix_samples

logger = logging.getLogger(__name__)

TRACK_COUNT = 0x10
SFX_COUNT = 0x100
CHANNEL_COUNT = 4
STREAMFILE_COUNT = 2
MIX_BUFFER_SAMPLES = 256

DEVICE_RATE = 44100
DEVICE_CHANNELS = 2

MUSIC_DIRECTORY = "Data/Music/"
SFX_DIRECTORY = "Data/SoundFX/"
GAME_CONFIG_PATH = "Data/Game/GameConfig.bin"

FileReader = Callable[[str], Optional[bytes]]


class AudioDecodeError(ValueError):
    """Raised when audio data cannot be decoded."""


class MusicStatus(IntEnum):
    STOPPED = 0
    PLAYING = 1
    PAUSED = 2
    LOADING = 3
    READY = 4


@dataclass
class DecodedAudio:
    """Interleaved signed 16-bit samples with their layout."""

    samples: list[int]
    channels: int
    rate: int


MusicDecoder = Callable[[bytes], DecodedAudio]


@dataclass
class TrackInfo:
    file_name: str = ""
    loop: bool = False
    loop_point: int = 0


@dataclass
class SfxInfo:
    name: str = ""
    samples: tuple[int, ...] = ()
    loaded: bool = False

    @property
    def length(self) -> int:
        return len(self.samples)


@dataclass
class Channel:
    sfx_id: int = -1
    samples: tuple[int, ...] = ()
    position: int = 0
    remaining: int = 0
    loop: bool = False
    pan: int = 0

    def reset(self) -> None:
        self.sfx_id = -1
        self.samples = ()
        self.position = 0
        self.remaining = 0
        self.loop = False
        self.pan = 0

    def start(self, sfx_id: int, sfx: SfxInfo) -> None:
        self.sfx_id = sfx_id
        self.samples = sfx.samples
        self.position = 0
        self.remaining = sfx.length


class PcmStream:
    """A seekable source of interleaved PCM samples."""

    def __init__(self, samples: Sequence[int], channels: int = DEVICE_CHANNELS) -> None:
        if channels <= 0:
            raise ValueError("channel count must be positive")
        self._samples = tuple(samples)
        self.channels = channels
        self.position = 0

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def at_end(self) -> bool:
        return self.position >= len(self._samples)

    def read(self, count: int) -> list[int]:
        """Return up to ``count`` samples; an empty list at the end of the stream."""
        if count < 0:
            raise ValueError("cannot read a negative number of samples")
        chunk = self._samples[self.position:self.position + count]
        self.position += len(chunk)
        return list(chunk)

    def seek(self, sample: int) -> None:
        """Move to the start of frame ``sample``."""
        if sample < 0:
            raise ValueError("cannot seek before the start of the stream")
        self.position = min(sample * self.channels, len(self._samples))


def _decode_wav(data: bytes) -> DecodedAudio:
    try:
        with wave.open(io.BytesIO(data), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            raw = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError) as exc:
        raise AudioDecodeError(f"invalid WAV data: {exc}") from exc

    if width == 1:
        samples = [(value - 0x80) << 8 for value in raw]
    elif width == 2:
        pcm = array("h")
        pcm.frombytes(raw[: len(raw) - len(raw) % 2])
        if sys.byteorder == "big":
            pcm.byteswap()
        samples = pcm.tolist()
    else:
        raise AudioDecodeError(f"unsupported sample width: {width} bytes")
    return DecodedAudio(samples, channels, rate)


def _to_device_format(audio: DecodedAudio) -> list[int]:
    channels = audio.channels
    if channels <= 0 or audio.rate <= 0:
        raise AudioDecodeError("audio has no channels or no sample rate")
    frames = [
        tuple(audio.samples[start:start + channels])
        for start in range(0, len(audio.samples) - channels + 1, channels)
    ]
    stereo = [(frame[0], frame[0]) if channels == 1 else frame[:2] for frame in frames]

    if audio.rate != DEVICE_RATE:
        out_frames = len(stereo) * DEVICE_RATE // audio.rate
        stereo = [stereo[index * audio.rate // DEVICE_RATE] for index in range(out_frames)]

    return [sample for frame in stereo for sample in frame]


class _ConfigReader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise ValueError(f"game config ends early at offset {self._pos}")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def string(self) -> str:
        return self.take(self.byte()).decode("latin-1")


def read_global_sfx_names(data: bytes) -> list[str]:
    """Return the global sound effect paths listed in game config data."""
    reader = _ConfigReader(data)
    for _ in range(3):
        reader.string()

    object_count = reader.byte()
    for _ in range(object_count * 2):
        reader.string()

    for _ in range(reader.byte()):
        reader.string()
        reader.take(4)

    return [reader.string() for _ in range(reader.byte())]


def sfx_short_name(sfx_name: str) -> str:
    """Name of a sound effect without its folder, extension or spaces."""
    mode = 0
    result = []
    for char in sfx_name:
        if char == "." and mode == 1:
            mode = 2
        elif char in "/\\" and mode == 0:
            mode = 1
        elif char != " " and mode == 1:
            result.append(char)
    return "".join(result)


class AudioEngine:
    """Plays sound effects and music into an interleaved stereo 16-bit stream."""

    def __init__(
        self,
        read_file: FileReader,
        *,
        enabled: bool = True,
        decode_music: MusicDecoder = _decode_wav,
        decode_sfx: MusicDecoder = _decode_wav,
    ) -> None:
        self._read_file = read_file
        self._decode_music = decode_music
        self._decode_sfx = decode_sfx
        self.audio_enabled = enabled

        self.master_volume = MAX_VOLUME
        self.sfx_volume = MAX_VOLUME
        self.bgm_volume = MAX_VOLUME
        self.track_id = -1
        self.music_status = MusicStatus.STOPPED
        self.current_music_track = -1

        self.global_sfx_count = 0
        self.stage_sfx_count = 0
        self.next_channel_pos = 0

        self.music_tracks = [TrackInfo() for _ in range(TRACK_COUNT)]
        self.sfx_list = [SfxInfo() for _ in range(SFX_COUNT)]
        self.channels = [Channel() for _ in range(CHANNEL_COUNT)]
        self.global_sfx_names: dict[int, str] = {}

        self._stream: Optional[PcmStream] = None
        self._stream_loop = False
        self._stream_loop_point = 0
        self._pending: list[int] = []

        self.stop_all_sfx()

    def _read(self, path: str) -> Optional[bytes]:
        try:
            return self._read_file(path)
        except FileNotFoundError:
            return None

    @staticmethod
    def _check_sfx(sfx: int) -> None:
        if not 0 <= sfx < SFX_COUNT:
            raise IndexError(f"sound effect id {sfx} out of range")

    # Sound effects

    def load_global_sfx(self) -> None:
        """Load every sound effect listed in the game config."""
        self.global_sfx_count = 0
        data = self._read(GAME_CONFIG_PATH)
        if data is not None:
            names = read_global_sfx_names(data)
            self.global_sfx_count = len(names)
            for sfx_id, name in enumerate(names):
                self.load_sfx(name, sfx_id)
                self.global_sfx_names[sfx_id] = sfx_short_name(name)

        self.next_channel_pos = 0
        for channel in self.channels:
            channel.sfx_id = -1

    def load_sfx(self, file_path: str, sfx_id: int) -> None:
        """Load a WAV sound effect from the sound folder into slot ``sfx_id``."""
        if not self.audio_enabled:
            return
        self._check_sfx(sfx_id)
        data = self._read(SFX_DIRECTORY + file_path)
        if data is None:
            return
        try:
            samples = _to_device_format(self._decode_sfx(data))
        except AudioDecodeError as exc:
            logger.warning("Unable to read sfx %s: %s", file_path, exc)
            return
        self.sfx_list[sfx_id] = SfxInfo(name=file_path, samples=tuple(samples), loaded=True)

    def play_sfx(self, sfx: int, loop: bool) -> None:
        self._check_sfx(sfx)
        channel_id = self.next_channel_pos
        self.next_channel_pos += 1
        for index, channel in enumerate(self.channels):
            if channel.sfx_id == sfx:
                channel_id = index
                break

        channel = self.channels[channel_id]
        channel.start(sfx, self.sfx_list[sfx])
        channel.loop = bool(loop)
        channel.pan = 0
        if self.next_channel_pos == CHANNEL_COUNT:
            self.next_channel_pos = 0

    def stop_sfx(self, sfx: int) -> None:
        for channel in self.channels:
            if channel.sfx_id == sfx:
                channel.reset()

    def set_sfx_attributes(self, sfx: int, loop_count: int, pan: int) -> None:
        """Restart ``sfx`` on its channel (or a free one) with a new loop flag and pan."""
        self._check_sfx(sfx)
        channel = next(
            (ch for ch in self.channels if ch.sfx_id in (sfx, -1)),
            None,
        )
        if channel is None:
            return
        channel.start(sfx, self.sfx_list[sfx])
        if loop_count != -1:
            channel.loop = bool(loop_count)
        channel.pan = pan

    def stop_all_sfx(self) -> None:
        for channel in self.channels:
            channel.sfx_id = -1

    def _release_slot(self, index: int) -> None:
        if 0 <= index < SFX_COUNT and self.sfx_list[index].loaded:
            self.sfx_list[index] = SfxInfo()

    def release_global_sfx(self) -> None:
        self.stop_all_sfx()
        for index in range(self.global_sfx_count - 1, -1, -1):
            self._release_slot(index)
        self.global_sfx_count = 0

    def release_stage_sfx(self) -> None:
        first = self.global_sfx_count
        for index in range(self.stage_sfx_count + first, first - 1, -1):
            self._release_slot(index)
        self.stage_sfx_count = 0

    # Music

    def set_music_track(self, file_path: str, track_id: int, loop: bool, loop_point: int) -> None:
        if not 0 <= track_id < TRACK_COUNT:
            raise IndexError(f"music track {track_id} out of range")
        track = self.music_tracks[track_id]
        track.file_name = MUSIC_DIRECTORY + file_path
        track.loop = bool(loop)
        track.loop_point = loop_point

    def play_music(self, track: int) -> bool:
        """Start ``track``; False if audio is off, the slot is empty or music is loading."""
        if not self.audio_enabled:
            return False
        if not 0 <= track < TRACK_COUNT:
            raise IndexError(f"music track {track} out of range")

        if self.music_tracks[track].file_name:
            if self.music_status != MusicStatus.LOADING:
                self.current_music_track = track
                self.music_status = MusicStatus.LOADING
                self._load_music()
                return True
            logger.warning("music tried to play while music was loading")
        else:
            self.stop_music()
        return False

    def _load_music(self) -> None:
        self._stream = None
        self._pending = []
        track = self.music_tracks[self.current_music_track]
        data = self._read(track.file_name)
        if data is None:
            self.music_status = MusicStatus.STOPPED
            return
        try:
            decoded = self._decode_music(data)
            samples = _to_device_format(decoded)
        except AudioDecodeError as exc:
            self.music_status = MusicStatus.STOPPED
            logger.warning("Failed to load music %s: %s", track.file_name, exc)
            return

        self._stream = PcmStream(samples, DEVICE_CHANNELS)
        self._stream_loop = track.loop
        self._stream_loop_point = track.loop_point * DEVICE_RATE // decoded.rate
        self.music_status = MusicStatus.PLAYING
        self.master_volume = MAX_VOLUME
        self.track_id = self.current_music_track
        self.current_music_track = -1

    def stop_music(self) -> None:
        self.music_status = MusicStatus.STOPPED
        self._stream = None
        self._pending = []

    def set_music_volume(self, volume: int) -> None:
        self.master_volume = max(0, min(MAX_VOLUME, volume))

    def pause_sound(self) -> bool:
        if self.music_status == MusicStatus.PLAYING:
            self.music_status = MusicStatus.PAUSED
            return True
        return False

    def resume_sound(self) -> None:
        if self.music_status == MusicStatus.PAUSED:
            self.music_status = MusicStatus.PLAYING

    # Mixing

    def _mix_music(self, mix: list[int]) -> list[int]:
        stream = self._stream
        if stream is None or stream.sample_count == 0:
            return mix
        if self.music_status not in (MusicStatus.READY, MusicStatus.PLAYING):
            return mix

        wanted = len(mix)
        while self.music_status == MusicStatus.PLAYING and len(self._pending) < wanted:
            chunk = stream.read(MIX_BUFFER_SAMPLES)
            if not chunk:
                if self._stream_loop:
                    stream.seek(self._stream_loop_point)
                    if not stream.at_end:
                        continue
                self.music_status = MusicStatus.STOPPED
                break
            self._pending.extend(chunk)

        take = self._pending[:wanted]
        del self._pending[:wanted]
        if take:
            volume = self.bgm_volume * self.master_volume // MAX_VOLUME
            mix = mix_samples(mix, take, volume, 0)
        return mix

    def _mix_channel(self, channel: Channel, mix: list[int]) -> list[int]:
        if channel.sfx_id < 0 or not channel.samples:
            return mix

        wanted = len(mix)
        buffer: list[int] = []
        while len(buffer) != wanted:
            count = min(channel.remaining, wanted - len(buffer))
            buffer.extend(channel.samples[channel.position:channel.position + count])
            channel.position += count
            channel.remaining -= count
            if channel.remaining == 0:
                if channel.loop and channel.samples:
                    channel.position = 0
                    channel.remaining = len(channel.samples)
                else:
                    channel.reset()
                    break

        return mix_samples(mix, buffer, self.sfx_volume, channel.pan)

    def render(self, sample_count: int) -> list[int]:
        """Mix the next ``sample_count`` interleaved stereo samples."""
        if sample_count < 0:
            raise ValueError("sample count cannot be negative")
        if not self.audio_enabled:
            return [0] * sample_count

        output: list[int] = []
        remaining = sample_count
        while remaining:
            todo = min(remaining, MIX_BUFFER_SAMPLES)
            mix = self._mix_music([0] * todo)
            for channel in self.channels:
                mix = self._mix_channel(channel, mix)
            output.extend(clamp_to_int16(mix))
            remaining -= todo
        return output