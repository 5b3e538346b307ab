import pytest

from doc_browser.core.view_base import BaseView
from doc_browser.core.view_registry import ViewRegistry


class _Dummy(BaseView):
    id = "dummy"
    label = "Dummy"

    def prepare(self) -> None:
        pass

    def update(self, data) -> None:
        pass


def test_register_and_create():
    registry = ViewRegistry()
    assert registry.register(_Dummy) is _Dummy

    view = registry.create("dummy", coordinator=None)

    assert isinstance(view, _Dummy)
    assert registry.all_classes() == [_Dummy]
    assert list(registry.create_all()) == ["dummy"]


def test_register_rejects_non_views_and_duplicates():
    registry = ViewRegistry()
    registry.register(_Dummy)

    with pytest.raises(ValueError):
        registry.register(_Dummy)
    with pytest.raises(TypeError):
        registry.register(object)


def test_create_unknown_view():
    with pytest.raises(KeyError):
        ViewRegistry().create("nope")
