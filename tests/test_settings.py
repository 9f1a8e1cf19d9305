import pytest

from tsp_search.settings import SettingsStore
from tsp_search.solvers import Algorithm, HSASettings, SASettings, Settings, settings_for


def test_defaults():
    store = SettingsStore()
    assert store.sa == SASettings()
    assert store.sa.initial_temperature == 1500.0
    assert store.sa.neighborhood == "two-opt"
    assert store.hsa.memory_size == 24
    assert store.hsa.hmcr == 0.93


def test_updates_are_validated():
    store = SettingsStore()
    store.update_sa(iterations=300, neighborhood="swap")
    assert store.sa.iterations == 300
    with pytest.raises(ValueError):
        store.update_sa(cooling_rate=1.5)
    assert store.sa.cooling_rate == 0.988
    store.update_hsa(par=0.5)
    assert store.hsa.par == 0.5
    store.reset_sa()
    store.reset_hsa()
    assert store.sa == SASettings() and store.hsa == HSASettings()


def test_presets_round_trip(tmp_path):
    path = tmp_path / "settings.json"
    store = SettingsStore(path)
    store.update_sa(iterations=111)
    preset = store.save_preset("  fast  ")
    assert preset.name == "fast"
    store.update_sa(iterations=999)
    store.save()

    loaded = SettingsStore(path)
    assert loaded.sa.iterations == 999
    assert loaded.apply_preset("fast")
    assert loaded.sa.iterations == 111
    assert loaded.apply_preset(preset.id)
    assert not loaded.apply_preset("nope")
    assert loaded.delete_preset("fast")
    assert not loaded.delete_preset("fast")
    assert loaded.presets == []


def test_blank_preset_name():
    assert SettingsStore().save_preset("   ").name == "Preset"


def test_settings_for_ignores_unknown_keys():
    settings = settings_for("SA", {"iterations": 10, "legacy": True})
    assert settings == SASettings(iterations=10)
    assert isinstance(settings_for(Algorithm.HSA), HSASettings)


def test_settings_base_is_abstract():
    with pytest.raises(TypeError):
        Settings()
    assert isinstance(SASettings(), Settings)
