# retrokit

Building blocks for a retro 2D game engine, in pure Python with no
third-party dependencies:

- `retrokit.animation` reads binary sprite animation files and steps
  entities through their animations.
- `retrokit.mixing` mixes interleaved stereo 16-bit samples.
- `retrokit.audio` keeps sound-effect channels and a music stream and
  renders them into blocks of 16-bit stereo samples.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Animation (`retrokit.animation`)

`parse_animation_file(data, register_sheet)` decodes the bytes of an
animation file into an `AnimationFile`. Each non-empty sprite-sheet name
in the file is passed to `register_sheet`, which returns the sheet id the
frames should use. An `AnimationFile` holds a list of `SpriteAnimation`
records (each with its `SpriteFrame` list) and a list of `Hitbox` records
with eight directions each. For animations of the
`RotationStyle.STATIC_FRAMES` style, `frame_count` is halved. All frames are
still kept in `frames`, because the second half holds the pre-rotated
variants. Data that ends early, or a frame that names an unknown sheet,
raises `AnimationFormatError`.

`process_object_animation(animation, entity)` advances an
`AnimatedEntity`:

- Each call adds the animation's speed to the timer. If the entity has a
  positive speed of its own, that speed is added instead, capped at 240.
- If the entity's animation has changed, its frame, timer and speed are
  reset.
- When the timer reaches 240, the frame steps on.
- Past the last frame, playback goes back to the loop point.

`AnimationStore(read_file, register_sheet)` keeps the loaded files.
`read_file(path)` returns bytes, or `None` (or raises
`FileNotFoundError`) if the file is missing.

- `add_animation_file(file_path)` returns the file already loaded under
  that name. Otherwise it loads `Data/Animations/<file_path>` and adds it
  to `files`. A missing file is added as an empty entry. It returns
  `None` once 256 files are held.
- `load_animation_file(file_path)` reads and parses a file and counts its
  animations, frames and hitboxes against the store's limits: 1024
  animations, 4096 frames and 32 hitboxes. Going over a limit raises
  `AnimationLimitError`. It returns the parsed file, or `None` if the file
  is missing, and does not add it to `files`.
- `default_animation_file()` returns the first loaded file, or `None`.
- `process(animation_file, entity)` runs `process_object_animation` with
  the entity's current animation.
- `clear()` drops every file and resets the counts.

## Mixing (`retrokit.mixing`)

- `mix_samples(dst, src, volume, pan)` returns a new list, which is `dst`
  with `src` added to it:
  - `volume` runs from 0 to 100 and is capped at 100.
  - `pan` runs from -100 to 100. Even indices are the left channel and
    odd indices the right.
  - A `src` longer than `dst` raises `ValueError`.
- `clamp_to_int16(samples)` clamps values to the signed 16-bit range.

## Audio engine (`retrokit.audio`)

```python
from retrokit.audio import AudioEngine

def read_file(path):
    with open(path, "rb") as f:
        return f.read()

engine = AudioEngine(read_file)
engine.load_sfx("Global/Jump.wav", 0)
engine.play_sfx(0, loop=False)
block = engine.render(512)  # 256 stereo frames as ints
```

`AudioEngine(read_file, *, enabled=True, decode_music=..., decode_sfx=...)`
works on interleaved stereo at 44100 Hz. By default, both decoders read
8- or 16-bit PCM WAV through the standard `wave` module. A decoder is any
callable that takes bytes and returns a `DecodedAudio(samples, channels,
rate)`, or raises `AudioDecodeError`. Decoded audio is converted to
stereo and resampled (nearest sample) to 44100 Hz.

Sound effects:

- `load_global_sfx()` reads the names from `Data/Game/GameConfig.bin`,
  loads each one, and records its short name in `global_sfx_names`.
- `load_sfx(file_path, sfx_id)` loads `Data/SoundFX/<file_path>` into slot
  `sfx_id`. There are 256 slots, and an id out of range raises
  `IndexError`.
- `play_sfx(sfx, loop)` plays an effect. A channel already playing that
  effect is reused; otherwise the next of the four channels is taken in
  turn.
- `set_sfx_attributes(sfx, loop_count, pan)` restarts the effect on its
  channel or on a free one, and sets its pan. Its loop flag is changed
  unless `loop_count` is -1.
- `stop_sfx(sfx)`, `stop_all_sfx()`, `release_global_sfx()` and
  `release_stage_sfx()` stop effects or release their slots.

Loaded effects are `SfxInfo` records in `sfx_list`, and the channels are
`Channel` records in `channels`.

Music:

- `set_music_track(file_path, track_id, loop, loop_point)` sets one of 16
  slots to `Data/Music/<file_path>`. `loop_point` is a frame index in the
  track's own sample rate.
- `play_music(track)` decodes the whole track into a `PcmStream` and
  starts it. It returns `False` if audio is disabled, the slot is empty,
  or music is already loading. An empty slot also stops the music.
- `stop_music()`, `pause_sound()` (which returns whether it paused),
  `resume_sound()` and `set_music_volume(volume)` control playback;
  `set_music_volume` clamps the volume to 0–100.

`music_status` is a `MusicStatus`, and the slots are `TrackInfo` records.
`PcmStream.read(count)` returns up to `count` samples, and
`PcmStream.seek(sample)` moves to the start of a frame.

Output: `render(sample_count)` mixes the music and every active channel
and returns `sample_count` clamped 16-bit values. It works in blocks of
256 samples. When audio is disabled, it returns silence.

Helpers:

- `read_global_sfx_names(data)` lists the global sound-effect paths in
  game configuration bytes.
- `sfx_short_name(sfx_name)` turns `Global/Jump.wav` into `Jump`.

## What it does not do

- It decodes no compressed audio such as Ogg Vorbis; only the WAV
  decoders are built in. Supply your own decoder for other formats.
- It opens no sound device. `render` only returns samples, and sending
  them to speakers is up to the caller.
- It draws nothing. Sprite sheets are only passed to the
  `register_sheet` callback.