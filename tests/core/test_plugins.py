import pytest

from scriptinspector.core import plugins
from scriptinspector.core.models import CycleReport
from scriptinspector.core.plugins import (CycleDetector, get_available_detectors, get_detector_by_name,
                                          load_detectors, register_detector)
from scriptinspector.plugins.madge import MadgeCycleDetector


@pytest.fixture
def clean_registry(monkeypatch):
    monkeypatch.setattr(plugins, "_detector_registry", {})


def test_builtin_madge_detector_is_registered():
    load_detectors()
    assert get_detector_by_name("madge") is MadgeCycleDetector
    assert MadgeCycleDetector in get_available_detectors()


def test_register_detector_as_decorator(clean_registry):
    @register_detector
    class Dummy(CycleDetector):
        name = "dummy"
        def check_circular(self, target_path, options=None):
            return CycleReport(success=True)

    assert get_detector_by_name("dummy") is Dummy


def test_register_rejects_unnamed_and_foreign_classes(clean_registry):
    class Unnamed(CycleDetector):
        def check_circular(self, target_path, options=None):
            return CycleReport(success=True)

    with pytest.raises(ValueError):
        register_detector(Unnamed)
    with pytest.raises(TypeError):
        register_detector(dict)


def test_broken_entry_point_is_skipped(clean_registry, mocker):
    broken = mocker.Mock()
    broken.name = "broken"
    broken.load.side_effect = ImportError("missing dependency")
    mocker.patch("scriptinspector.core.plugins.importlib.metadata.entry_points", return_value=[broken])
    load_detectors()
    assert get_detector_by_name("broken") is None
    assert get_detector_by_name("madge") is MadgeCycleDetector
