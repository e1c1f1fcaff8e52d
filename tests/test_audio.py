import numpy as np
import pytest
import soundfile as sf

from simon_piano.audio import (
    NoteAssetError,
    NoteBank,
    find_clip,
    load_clip,
    midi_to_freq,
    scale_midi,
    synth_note,
)


def write_clip(path, samples, sample_rate=22050, subtype=None):
    sf.write(str(path), np.asarray(samples, dtype=np.float32), sample_rate, subtype=subtype)


def write_wav(path, samples, sample_rate=22050, channels=1):
    data = np.asarray(samples, dtype=np.float32)
    if channels > 1:
        data = data.reshape(-1, channels)
    write_clip(path, data, sample_rate, subtype="PCM_16")


def test_midi_to_freq_a4():
    assert midi_to_freq(69) == pytest.approx(440.0)
    assert midi_to_freq(60) == pytest.approx(261.63, abs=0.01)


def test_c_major_eight_keys_ends_on_octave():
    assert scale_midi("c_major", 8) == [60, 62, 64, 65, 67, 69, 71, 72]


def test_unknown_scale():
    with pytest.raises(ValueError):
        scale_midi("dorian", 8)


def test_synth_note_is_normalized():
    tone = synth_note(440.0, sample_rate=8000, duration_s=0.25)
    assert tone.dtype == np.float32
    assert len(tone) == 2000
    assert np.max(np.abs(tone)) == pytest.approx(1.0, abs=1e-5)
    assert tone[0] == 0.0


def test_load_clip_downmixes_stereo(tmp_path):
    path = tmp_path / "1.wav"
    write_wav(path, [0.5, -0.5, 0.25, 0.25], channels=2)
    data, sr = load_clip(str(path))
    assert sr == 22050
    assert data.shape == (2,)
    assert data[0] == pytest.approx(0.0, abs=1e-4)
    assert data[1] == pytest.approx(0.25, abs=1e-3)


def test_from_directory_loads_numbered_clips(tmp_path):
    for i in range(1, 4):
        write_wav(tmp_path / f"{i}.wav", np.full(10 * i, 0.1))
    bank = NoteBank.from_directory(str(tmp_path), 3)
    assert len(bank) == 3
    assert [len(c) for c in bank.clips] == [10, 20, 30]
    assert bank.sample_rate == 22050


def test_missing_clip_is_fatal(tmp_path):
    write_wav(tmp_path / "1.wav", np.zeros(10))
    with pytest.raises(NoteAssetError, match="2.wav"):
        NoteBank.from_directory(str(tmp_path), 2)


def test_garbage_clip_is_fatal(tmp_path):
    (tmp_path / "1.wav").write_bytes(b"not a wav file")
    with pytest.raises(NoteAssetError):
        NoteBank.from_directory(str(tmp_path), 1)


def test_mismatched_sample_rates(tmp_path):
    write_wav(tmp_path / "1.wav", np.zeros(10), sample_rate=22050)
    write_wav(tmp_path / "2.wav", np.zeros(10), sample_rate=44100)
    with pytest.raises(NoteAssetError, match="Hz"):
        NoteBank.from_directory(str(tmp_path), 2)


def test_24_bit_wav_loads(tmp_path):
    write_clip(tmp_path / "1.wav", np.full(16, 0.5), subtype="PCM_24")
    data, sr = load_clip(str(tmp_path / "1.wav"))
    assert sr == 22050
    np.testing.assert_allclose(data, np.full(16, 0.5), atol=1e-4)


def test_from_directory_loads_flac_by_number(tmp_path):
    write_clip(tmp_path / "1.flac", np.full(12, 0.2))
    write_clip(tmp_path / "2.flac", np.full(24, 0.2))
    bank = NoteBank.from_directory(str(tmp_path), 2)
    assert [len(c) for c in bank.clips] == [12, 24]


@pytest.mark.skipif("MP3" not in sf.available_formats(), reason="libsndfile built without MP3")
def test_from_directory_loads_mp3_by_number(tmp_path):
    for i in range(1, 3):
        write_clip(tmp_path / f"{i}.mp3", 0.3 * np.sin(np.linspace(0, 60, 4410)), sample_rate=44100)
    bank = NoteBank.from_directory(str(tmp_path), 2)
    assert len(bank) == 2
    assert bank.sample_rate == 44100
    assert all(len(c) > 0 for c in bank.clips)


def test_wav_is_preferred_over_other_formats(tmp_path):
    write_wav(tmp_path / "1.wav", np.zeros(10))
    write_clip(tmp_path / "1.flac", np.zeros(10))
    assert find_clip(str(tmp_path), 1).endswith("1.wav")


def test_missing_clip_lists_tried_names(tmp_path):
    with pytest.raises(NoteAssetError, match="1.mp3"):
        find_clip(str(tmp_path), 1)


def test_overlapping_notes_are_mixed():
    bank = NoteBank([np.full(6, 0.25, dtype=np.float32), np.full(3, 0.5, dtype=np.float32)], volume=1.0)
    bank.play(0)
    bank.play(1)
    out = bank.mix(4)
    np.testing.assert_allclose(out, [0.75, 0.75, 0.75, 0.25])
    assert bank.active_voices() == 1

    out = bank.mix(4)
    np.testing.assert_allclose(out, [0.25, 0.25, 0.0, 0.0])
    assert bank.active_voices() == 0


def test_mix_clips_and_scales_volume():
    bank = NoteBank([np.ones(4, dtype=np.float32)], volume=0.5)
    bank.play(0)
    bank.play(0)
    bank.play(0)
    np.testing.assert_allclose(bank.mix(2), [1.0, 1.0])


def test_play_out_of_range():
    bank = NoteBank.synthesized(8, sample_rate=8000, duration_s=0.05)
    with pytest.raises(IndexError):
        bank.play(8)


def test_volume_is_clamped():
    assert NoteBank([np.zeros(1)], volume=3.0).volume == 1.0


def test_pentatonic_scale_continues_into_next_octave():
    assert scale_midi("pentatonic", 7) == [60, 62, 64, 67, 69, 72, 74]


def test_synthesized_scales_differ():
    major = NoteBank.synthesized(4, scale="c_major", sample_rate=8000, duration_s=0.05)
    chromatic = NoteBank.synthesized(4, scale="chromatic", sample_rate=8000, duration_s=0.05)
    np.testing.assert_array_equal(major.clips[0], chromatic.clips[0])
    assert not np.array_equal(major.clips[1], chromatic.clips[1])
