import io
import struct
import wave

import pytest

from retrokit.audio import (
    CHANNEL_COUNT,
    AudioEngine,
    MusicStatus,
    PcmStream,
    read_global_sfx_names,
    sfx_short_name,
)


def make_wav(samples, channels=1, rate=44100):
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(struct.pack("<%dh" % len(samples), *samples))
    return buf.getvalue()


def cstr(text):
    raw = text.encode("latin-1")
    return bytes([len(raw)]) + raw


def make_config(sfx_names):
    data = cstr("Title") + cstr("Data") + cstr("About")
    data += bytes([1]) + cstr("Ring") + cstr("Global/Ring.txt")
    data += bytes([1]) + cstr("Lives") + b"\x03\x00\x00\x00"
    data += bytes([len(sfx_names)]) + b"".join(cstr(n) for n in sfx_names)
    return data


def make_engine(files, **kwargs):
    return AudioEngine(files.get, **kwargs)


def test_sfx_short_name_strips_folder_extension_and_spaces():
    assert sfx_short_name("Global/Jump.wav") == "Jump"
    assert sfx_short_name("Stage\\Big Boom.wav") == "BigBoom"
    assert sfx_short_name("NoFolder.wav") == ""


def test_read_global_sfx_names_round_trip():
    names = ["Global/Jump.wav", "Global/Ring.wav"]
    assert read_global_sfx_names(make_config(names)) == names


def test_read_global_sfx_names_truncated():
    with pytest.raises(ValueError):
        read_global_sfx_names(make_config(["Global/Jump.wav"])[:-3])


def test_pcm_stream_read_and_seek():
    stream = PcmStream([1, 2, 3, 4, 5, 6], channels=2)
    assert stream.read(4) == [1, 2, 3, 4]
    assert stream.read(4) == [5, 6]
    assert stream.read(4) == []
    stream.seek(1)
    assert stream.read(2) == [3, 4]
    with pytest.raises(ValueError):
        stream.seek(-1)


def test_load_sfx_mono_becomes_stereo():
    files = {"Data/SoundFX/Beep.wav": make_wav([100, -200, 300])}
    engine = make_engine(files)
    engine.load_sfx("Beep.wav", 0)
    info = engine.sfx_list[0]
    assert info.loaded
    assert info.name == "Beep.wav"
    assert list(info.samples) == [100, 100, -200, -200, 300, 300]


def test_load_sfx_resamples_to_device_rate():
    files = {"Data/SoundFX/Low.wav": make_wav([7, 9], rate=22050)}
    engine = make_engine(files)
    engine.load_sfx("Low.wav", 1)
    assert list(engine.sfx_list[1].samples) == [7, 7, 7, 7, 9, 9, 9, 9]


def test_load_sfx_missing_file_leaves_slot_empty():
    engine = make_engine({})
    engine.load_sfx("Missing.wav", 0)
    assert not engine.sfx_list[0].loaded


def test_play_sfx_renders_samples_then_frees_channel():
    data = [1000, -1000, 2000, -2000]
    files = {"Data/SoundFX/S.wav": make_wav(data, channels=2)}
    engine = make_engine(files)
    engine.load_sfx("S.wav", 0)
    engine.play_sfx(0, False)
    out = engine.render(8)
    assert out[:4] == data
    assert out[4:] == [0, 0, 0, 0]
    assert all(ch.sfx_id == -1 for ch in engine.channels)


def test_looping_sfx_repeats():
    data = [10, 20, 30, 40]
    files = {"Data/SoundFX/L.wav": make_wav(data, channels=2)}
    engine = make_engine(files)
    engine.load_sfx("L.wav", 0)
    engine.play_sfx(0, True)
    assert engine.render(10) == data + data + data[:2]
    assert engine.channels[0].sfx_id == 0


def test_play_sfx_cycles_channels():
    engine = make_engine({})
    for sfx in range(CHANNEL_COUNT):
        engine.play_sfx(sfx, False)
    assert [ch.sfx_id for ch in engine.channels] == list(range(CHANNEL_COUNT))
    assert engine.next_channel_pos == 0


def test_stop_sfx_silences_channel():
    files = {"Data/SoundFX/S.wav": make_wav([500, 500], channels=2)}
    engine = make_engine(files)
    engine.load_sfx("S.wav", 0)
    engine.play_sfx(0, True)
    engine.stop_sfx(0)
    assert engine.render(4) == [0, 0, 0, 0]


def test_render_clamps_to_int16():
    data = [32767, -32768]
    files = {"Data/SoundFX/S.wav": make_wav(data, channels=2)}
    engine = make_engine(files)
    engine.load_sfx("S.wav", 0)
    engine.load_sfx("S.wav", 1)
    engine.play_sfx(0, False)
    engine.play_sfx(1, False)
    assert engine.render(2) == [32767, -32768]


def test_music_plays_once_then_stops():
    data = [100, 200, 300, 400]
    files = {"Data/Music/Theme.wav": make_wav(data, channels=2)}
    engine = make_engine(files)
    engine.set_music_track("Theme.wav", 0, False, 0)
    assert engine.play_music(0) is True
    assert engine.music_status == MusicStatus.PLAYING
    assert engine.track_id == 0
    out = engine.render(8)
    assert out[:4] == data
    assert out[4:] == [0, 0, 0, 0]
    assert engine.music_status == MusicStatus.STOPPED


def test_music_loops_from_loop_point():
    data = [1, 2, 3, 4, 5, 6]
    files = {"Data/Music/Loop.wav": make_wav(data, channels=2)}
    engine = make_engine(files)
    engine.set_music_track("Loop.wav", 3, True, 1)
    engine.play_music(3)
    assert engine.render(10) == [1, 2, 3, 4, 5, 6, 3, 4, 5, 6]
    assert engine.music_status == MusicStatus.PLAYING


def test_play_music_empty_slot_and_disabled():
    engine = make_engine({})
    assert engine.play_music(2) is False
    assert engine.music_status == MusicStatus.STOPPED
    disabled = make_engine({}, enabled=False)
    disabled.set_music_track("Theme.wav", 0, False, 0)
    assert disabled.play_music(0) is False
    assert disabled.render(3) == [0, 0, 0]


def test_missing_music_file_stops():
    engine = make_engine({})
    engine.set_music_track("Gone.wav", 0, False, 0)
    assert engine.play_music(0) is True
    assert engine.music_status == MusicStatus.STOPPED


def test_pause_and_resume():
    files = {"Data/Music/T.wav": make_wav([5, 5, 5, 5], channels=2)}
    engine = make_engine(files)
    assert engine.pause_sound() is False
    engine.set_music_track("T.wav", 0, True, 0)
    engine.play_music(0)
    assert engine.pause_sound() is True
    assert engine.render(4) == [0, 0, 0, 0]
    engine.resume_sound()
    assert engine.music_status == MusicStatus.PLAYING
    assert engine.render(4) == [5, 5, 5, 5]


def test_set_music_volume_clamps():
    engine = make_engine({})
    engine.set_music_volume(250)
    assert engine.master_volume == 100
    engine.set_music_volume(-5)
    assert engine.master_volume == 0


def test_music_volume_zero_silences():
    files = {"Data/Music/T.wav": make_wav([900, 900], channels=2)}
    engine = make_engine(files)
    engine.set_music_track("T.wav", 0, True, 0)
    engine.play_music(0)
    engine.set_music_volume(0)
    assert engine.render(4) == [0, 0, 0, 0]


def test_load_global_sfx_and_release():
    names = ["Global/Jump.wav", "Global/Ring.wav"]
    files = {
        "Data/Game/GameConfig.bin": make_config(names),
        "Data/SoundFX/Global/Jump.wav": make_wav([1, 2]),
        "Data/SoundFX/Global/Ring.wav": make_wav([3, 4]),
    }
    engine = make_engine(files)
    engine.load_global_sfx()
    assert engine.global_sfx_count == 2
    assert engine.sfx_list[1].name == "Global/Ring.wav"
    assert engine.global_sfx_names == {0: "Jump", 1: "Ring"}
    engine.release_global_sfx()
    assert engine.global_sfx_count == 0
    assert not engine.sfx_list[0].loaded
    assert not engine.sfx_list[1].loaded


def test_release_stage_sfx_keeps_global():
    files = {"Data/SoundFX/A.wav": make_wav([1]), "Data/SoundFX/B.wav": make_wav([2])}
    engine = make_engine(files)
    engine.load_sfx("A.wav", 0)
    engine.load_sfx("B.wav", 1)
    engine.global_sfx_count = 1
    engine.stage_sfx_count = 1
    engine.release_stage_sfx()
    assert engine.sfx_list[0].loaded
    assert not engine.sfx_list[1].loaded
    assert engine.stage_sfx_count == 0


def test_invalid_ids_raise():
    engine = make_engine({})
    with pytest.raises(IndexError):
        engine.play_sfx(-1, False)
    with pytest.raises(IndexError):
        engine.set_music_track("X.wav", 16, False, 0)
    with pytest.raises(ValueError):
        engine.render(-1)