import gc

import pytest

from manager import (
    BaseManageable,
    BaseManager,
    ClosedError,
    LifecycleError,
    Manageable,
    ManageableState,
    ValidationError,
)

# -------------------------------------------------------------------
# Protocol conformance
# -------------------------------------------------------------------


class TestManageableProtocol:
    def test_base_manageable_conforms(self):
        assert isinstance(BaseManageable(), Manageable)

    def test_duck_typed_child_conforms(self):
        class Duck:
            def initialize(self, parent, key): ...

            def close(self): ...

            def release(self): ...

            def get_key(self): ...

            def get_parent(self): ...

        assert isinstance(Duck(), Manageable)

    def test_incomplete_child_does_not_conform(self):
        class Partial:
            def close(self): ...

        assert not isinstance(Partial(), Manageable)


# -------------------------------------------------------------------
# Initialization
# -------------------------------------------------------------------


class TestInitialize:
    def test_starts_uninitialized(self):
        child = BaseManageable()
        assert child.state is ManageableState.UNINITIALIZED
        assert not child.closed

    def test_initialize_binds_key_and_parent(self, manager):
        child = BaseManageable()
        child.initialize(manager, "k")
        assert child.state is ManageableState.ACTIVE
        assert child.key == "k"
        assert child.parent is manager

    def test_initialize_requires_parent(self):
        with pytest.raises(ValidationError) as excinfo:
            BaseManageable().initialize(None, "k")
        assert excinfo.value.context["rule"] == "not_null"

    def test_initialize_requires_key(self, manager):
        with pytest.raises(ValidationError):
            BaseManageable().initialize(manager, "")

    def test_initialize_requires_weak_referenceable_parent(self):
        with pytest.raises(ValidationError):
            BaseManageable().initialize(object(), "k")

    def test_initialize_twice_is_rejected(self, manager):
        child = manager.create("k", "widget")
        with pytest.raises(LifecycleError):
            child.initialize(manager, "other")
        assert child.get_key() == "k"

    def test_initialize_after_close_is_rejected(self, manager):
        child = manager.create("k", "widget")
        child.close()
        with pytest.raises(ClosedError):
            child.initialize(manager, "k")

    def test_accessors_before_initialize(self):
        child = BaseManageable()
        with pytest.raises(LifecycleError):
            child.get_key()
        with pytest.raises(LifecycleError):
            child.get_parent()


# -------------------------------------------------------------------
# Closing
# -------------------------------------------------------------------


class TestClose:
    def test_close_deregisters(self, manager):
        child = manager.create("k", "widget")
        child.close()
        assert not manager.contains_child("k")
        assert manager.get_child_count() == 0
        assert child.closed
        assert child.state is ManageableState.CLOSED

    def test_close_twice_fails(self, manager):
        child = manager.create("k", "widget")
        child.close()
        with pytest.raises(ClosedError):
            child.close()

    def test_on_close_runs_once_for_self_close(self, manager):
        child = manager.create("k", "widget")
        child.close()
        assert child.released == 1

    def test_on_close_runs_once_for_manager_close(self, manager):
        child = manager.create("k", "widget")
        manager.close()
        assert child.released == 1
        with pytest.raises(ClosedError):
            child.close()

    def test_release_is_idempotent(self, manager):
        child = manager.create("k", "widget")
        manager.close_child("k")
        child.release()
        assert child.released == 1

    def test_get_parent_after_close(self, manager):
        child = manager.create("k", "widget")
        child.close()
        with pytest.raises(ClosedError):
            child.get_parent()

    def test_key_readable_after_close(self, manager):
        child = manager.create("k", "widget")
        child.close()
        assert child.get_key() == "k"

    def test_close_leaves_other_children(self, manager):
        first = manager.create("a", "widget")
        second = manager.create("b", "widget")
        first.close()
        assert manager.get("b") is second
        assert not second.closed

    def test_close_of_uninitialized_child(self):
        child = BaseManageable()
        child.close()
        assert child.closed

    def test_close_does_not_remove_a_different_child_under_same_key(self, manager):
        bound = manager.create("k", "widget")
        stray = BaseManageable()
        stray.initialize(manager, "k")
        stray.close()
        assert stray.closed
        assert manager.get("k") is bound

    def test_close_after_manager_closed_elsewhere(self, manager):
        stray = BaseManageable()
        stray.initialize(manager, "k")
        manager.close()
        stray.close()
        assert stray.closed


# -------------------------------------------------------------------
# Weak parent reference
# -------------------------------------------------------------------


class TestWeakParent:
    def test_manager_is_not_kept_alive_by_children(self, fresh_factory):
        mgr = BaseManager(factory=fresh_factory)
        child = mgr.create("k", "widget")
        del mgr
        gc.collect()
        with pytest.raises(ClosedError):
            child.get_parent()

    def test_close_after_manager_collected(self, fresh_factory):
        mgr = BaseManager(factory=fresh_factory)
        child = mgr.create("k", "widget")
        del mgr
        gc.collect()
        child.close()
        assert child.closed
        assert child.released == 1


# -------------------------------------------------------------------
# Equality and hashing
# -------------------------------------------------------------------


class TestEquality:
    def test_same_type_same_key_are_equal(self, manager, fresh_factory, widget_cls):
        child = manager.create("k", "widget")
        other = BaseManager(factory=fresh_factory)
        twin = other.create("k", "widget")
        assert child == twin
        assert hash(child) == hash(twin)
        assert len({child, twin}) == 1

    def test_different_types_same_key_are_not_equal(self, manager, fresh_factory):
        child = manager.create("k", "widget")
        other = BaseManager(factory=fresh_factory)
        cousin = other.create("k", "gadget")
        assert child != cousin

    def test_different_keys_are_not_equal(self, manager):
        assert manager.create("a", "widget") != manager.create("b", "widget")

    def test_equal_to_itself(self, manager):
        child = manager.create("k", "widget")
        assert child == child

    def test_uninitialized_children_compare_by_identity(self):
        first, second = BaseManageable(), BaseManageable()
        assert first == first
        assert first != second
        assert hash(first) != hash(second)

    def test_not_equal_to_other_objects(self, manager):
        child = manager.create("k", "widget")
        assert child != "k"

    def test_repr(self, manager):
        child = manager.create("k", "widget")
        assert repr(child) == "Widget(key='k', state=active)"
        child.close()
        assert repr(child) == "Widget(key='k', state=closed)"
