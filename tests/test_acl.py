"""Tests for the ACL facade and hierarchical resolution."""

from __future__ import annotations

import logging

import pytest

from archly import (
    DEFAULT_KEY,
    Acl,
    AclConfig,
    AclSnapshot,
    Action,
    CyclicHierarchyError,
    DuplicateEntryError,
    EntryNotFoundError,
    NilEntryError,
    NonEmptyError,
    SimpleEntry,
)


@pytest.fixture
def acl() -> Acl:
    return Acl()


@pytest.fixture
def hierarchy() -> Acl:
    """Nested roles and resources with wildcard grants on ACO-1-B / ACO-1-C."""
    acl = Acl()
    acl.add_resource("ACO-1")
    acl.add_resource("ACO-2")
    acl.add_resource("ACO-1-A", "ACO-1")
    acl.add_resource("ACO-1-B", "ACO-1")
    acl.add_resource("ACO-1-C", "ACO-1")
    acl.add_resource("ACO-1-A-1", "ACO-1-A")
    acl.add_resource("ACO-1-B-1", "ACO-1-B")
    acl.add_resource("ACO-1-C-1", "ACO-1-C")

    acl.add_role("ARO-1")
    acl.add_role("ARO-2")
    acl.add_role("ARO-1-A", "ARO-1")
    acl.add_role("ARO-1-A-1", "ARO-1-A")

    acl.allow_all_role("ACO-1-B")
    acl.deny_all_role("ACO-1-C")
    acl.allow("ARO-1", "ACO-1")
    return acl


class TestDefaultPolicy:
    """Tests for default allow / deny."""

    def test_default_is_deny(self, acl: Acl) -> None:
        assert acl.export_permissions() == {DEFAULT_KEY: {"ALL": False}}
        assert acl.is_allowed(None, None) is False
        assert acl.is_denied(None, None) is True

    def test_make_default_allow(self, acl: Acl) -> None:
        acl.make_default_allow()
        assert acl.is_allowed(None, None) is True
        assert acl.is_allowed("anyone", "anything") is True
        acl.make_default_deny()
        assert acl.is_allowed("anyone", "anything") is False

    def test_config_default_allow(self) -> None:
        acl = Acl(AclConfig(default_policy="allow"))
        assert acl.is_allowed("anyone", "anything") is True

    def test_unregistered_entries_fall_back_to_default(self, acl: Acl) -> None:
        assert acl.is_allowed("NA-ROLE", "NA-RES") is False
        assert acl.is_denied("NA-ROLE", "NA-RES") is True
        assert acl.is_allowed_action("NA-ROLE", "NA-RES", Action.CREATE) is False
        assert acl.is_denied_action("NA-ROLE", "NA-RES", Action.CREATE) is True

    def test_nothing_decisive_is_false_both_ways(self, acl: Acl) -> None:
        """Without any matching entry neither allowed nor denied."""
        acl.remove(None, None)
        assert acl.is_allowed("NA-ROLE", "NA-RES") is False
        assert acl.is_denied("NA-ROLE", "NA-RES") is False
        assert acl.is_allowed_action("NA-ROLE", "NA-RES", Action.CREATE) is False
        assert acl.is_denied_action("NA-ROLE", "NA-RES", Action.CREATE) is False

    def test_remove_default_twice(self, acl: Acl) -> None:
        acl.remove(None, None)
        with pytest.raises(EntryNotFoundError):
            acl.remove(None, None)
        with pytest.raises(EntryNotFoundError):
            acl.remove_action(None, None, Action.CREATE)


class TestGrants:
    """Tests for allow / deny and their registration side effect."""

    def test_allow_registers_entries(self, acl: Acl) -> None:
        acl.allow("R", "Q")
        assert acl.roles.has("R")
        assert acl.resources.has("Q")
        assert acl.is_allowed("R", "Q") is True

    def test_allow_ignores_duplicate_registration(self, acl: Acl) -> None:
        acl.add_role("staff")
        acl.add_role("editor", "staff")
        acl.allow("editor", "article")
        assert acl.roles.parent("editor") == "staff"

    def test_deny(self, acl: Acl) -> None:
        acl.make_default_allow()
        acl.deny("R", "Q")
        assert acl.is_allowed("R", "Q") is False
        assert acl.is_denied("R", "Q") is True

    def test_allow_all_resource(self, acl: Acl) -> None:
        acl.allow_all_resource("admin")
        assert acl.is_allowed("admin", "never-registered") is True
        assert acl.is_allowed("guest", "never-registered") is False
        assert not acl.resources.has("*")

    def test_deny_all_resource(self, acl: Acl) -> None:
        acl.make_default_allow()
        acl.deny_all_resource("banned")
        assert acl.is_denied("banned", "anything") is True
        assert acl.is_allowed("other", "anything") is True

    def test_allow_all_role(self, acl: Acl) -> None:
        acl.allow_all_role("public")
        assert acl.is_allowed("anyone", "public") is True
        assert acl.is_allowed(None, "public") is True

    def test_deny_all_role(self, acl: Acl) -> None:
        acl.make_default_allow()
        acl.deny_all_role("vault")
        assert acl.is_denied("anyone", "vault") is True

    def test_cumulative_actions_equal_all(self, acl: Acl) -> None:
        for action in (Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE):
            acl.allow_action("R", "Q", action)
        assert acl.is_allowed("R", "Q") is True
        assert "ALL" not in acl.export_permissions()["R::Q"]

    def test_partial_actions(self, acl: Acl) -> None:
        acl.allow_action("R", "Q", Action.READ)
        assert acl.is_allowed_action("R", "Q", Action.READ) is True
        assert acl.is_allowed("R", "Q", Action.READ) is True
        # Partial coverage falls through to the default deny.
        assert acl.is_allowed("R", "Q") is False
        assert acl.is_allowed_action("R", "Q", Action.UPDATE) is False

    def test_deny_action(self, acl: Acl) -> None:
        acl.allow("R", "Q")
        acl.deny_action("R", "Q", Action.DELETE)
        assert acl.is_allowed("R", "Q") is False
        assert acl.is_denied("R", "Q") is False
        assert acl.is_denied_action("R", "Q", Action.DELETE) is True
        assert acl.is_denied("R", "Q", Action.DELETE) is True
        assert acl.is_allowed_action("R", "Q", Action.CREATE) is True

    def test_remove_action_decomposes(self, acl: Acl) -> None:
        acl.allow("R", "Q")
        acl.remove_action("R", "Q", Action.DELETE)
        assert acl.export_permissions()["R::Q"] == {"CREATE": True, "READ": True, "UPDATE": True}
        assert acl.permissions.is_allowed_action("R", "Q", Action.DELETE).decisive is False
        # DELETE now falls through to the default deny.
        assert acl.is_allowed_action("R", "Q", Action.DELETE) is False
        assert acl.is_allowed_action("R", "Q", Action.UPDATE) is True

    def test_remove(self, acl: Acl) -> None:
        acl.allow("R", "Q")
        acl.remove("R", "Q")
        assert acl.is_allowed("R", "Q") is False
        with pytest.raises(EntryNotFoundError):
            acl.remove("R", "Q")

    def test_entries_and_strings_are_interchangeable(self, acl: Acl) -> None:
        acl.allow(SimpleEntry("R"), SimpleEntry("Q"))
        assert acl.is_allowed("R", "Q") is True
        assert acl.is_allowed(SimpleEntry("R"), "Q") is True

    def test_invalid_entry_type(self, acl: Acl) -> None:
        with pytest.raises(TypeError):
            acl.allow(42, "Q")  # type: ignore[arg-type]


class TestHierarchy:
    """Tests for inheritance along role and resource trees."""

    def test_parent_resource_grant_inherited(self, hierarchy: Acl) -> None:
        for res in ("ACO-1", "ACO-1-A", "ACO-1-A-1", "ACO-1-B", "ACO-1-B-1"):
            assert hierarchy.is_allowed("ARO-1", res) is True, res

    def test_specific_role_grant_beats_wildcard_deny(self, hierarchy: Acl) -> None:
        """ARO-1 on ACO-1 is checked before *::ACO-1-C."""
        assert hierarchy.is_allowed("ARO-1", "ACO-1-C") is True
        assert hierarchy.is_denied("ARO-1", "ACO-1-C") is False
        assert hierarchy.is_allowed("ARO-1", "ACO-1-C-1") is True

    def test_child_role_inherits(self, hierarchy: Acl) -> None:
        assert hierarchy.is_allowed("ARO-1-A-1", "ACO-1-A-1") is True

    def test_unrelated_resource_uses_default(self, hierarchy: Acl) -> None:
        assert hierarchy.is_allowed("ARO-1", "ACO-2") is False
        assert hierarchy.is_denied("ARO-1", "ACO-2") is True
        assert hierarchy.is_denied("ARO-1", "ACO-3") is True

    def test_wildcard_role_grants(self, hierarchy: Acl) -> None:
        assert hierarchy.is_denied("ARO-2", "ACO-1") is True
        assert hierarchy.is_denied("ARO-2", "ACO-1-A-1") is True
        assert hierarchy.is_allowed("ARO-2", "ACO-1-B") is True
        assert hierarchy.is_allowed("ARO-2", "ACO-1-B-1") is True
        assert hierarchy.is_denied("ARO-2", "ACO-1-C-1") is True
        assert hierarchy.is_allowed("ARO-3", "ACO-1-B") is True

    def test_child_role_deny_overrides_parent_allow(self) -> None:
        acl = Acl()
        acl.add_role("R")
        acl.add_role("R1", "R")
        acl.add_resource("Q")
        acl.allow("R", "Q")
        acl.deny("R1", "Q")
        assert acl.is_allowed("R1", "Q") is False
        assert acl.is_denied("R1", "Q") is True
        assert acl.is_allowed("R", "Q") is True

    def test_child_resource_deny_overrides_parent_allow(self) -> None:
        acl = Acl()
        acl.add_resource("docs")
        acl.add_resource("secret", "docs")
        acl.allow("staff", "docs")
        acl.deny("staff", "secret")
        assert acl.is_allowed("staff", "docs") is True
        assert acl.is_allowed("staff", "secret") is False

    def test_add_role_errors(self, acl: Acl) -> None:
        acl.add_role("R")
        with pytest.raises(DuplicateEntryError):
            acl.add_role("R")
        with pytest.raises(EntryNotFoundError):
            acl.add_role("R1", "ghost")
        with pytest.raises(NilEntryError):
            acl.add_role(None)


class TestRemoveEntries:
    """Tests for remove_resource / remove_role."""

    @pytest.fixture
    def grid(self) -> Acl:
        acl = Acl()
        for res in ("C1", "C2", "C3", "C4"):
            for rol in ("R1", "R2", "R3", "R4"):
                acl.allow(rol, res)
        return acl

    def test_nil_entry(self, grid: Acl) -> None:
        with pytest.raises(NilEntryError):
            grid.remove_resource(None)
        with pytest.raises(NilEntryError):
            grid.remove_role(None)

    def test_missing_entry(self, grid: Acl) -> None:
        with pytest.raises(EntryNotFoundError):
            grid.remove_resource("C9")
        with pytest.raises(EntryNotFoundError):
            grid.remove_role("R9")

    def test_remove_resource_purges_permissions(self, grid: Acl) -> None:
        assert grid.permissions.size() == 17
        assert grid.remove_resource("C4") == ["C4"]
        assert grid.permissions.size() == 13
        assert grid.is_allowed("R1", "C4") is False
        assert not grid.resources.has("C4")

    def test_remove_role_purges_permissions(self, grid: Acl) -> None:
        grid.remove_role(SimpleEntry("R4"))
        assert grid.permissions.size() == 13
        assert grid.is_allowed("R4", "C1") is False

    def test_remove_resource_cascade(self) -> None:
        acl = Acl()
        acl.add_resource("docs")
        acl.add_resource("drafts", "docs")
        acl.add_resource("old", "drafts")
        acl.allow("staff", "drafts")
        acl.allow("staff", "old")
        acl.allow("staff", "docs")
        removed = acl.remove_resource("docs", cascade=True)
        assert sorted(removed) == ["docs", "drafts", "old"]
        assert acl.export_permissions() == {DEFAULT_KEY: {"ALL": False}}
        assert acl.export_resources() == {}

    def test_remove_role_reparents(self) -> None:
        acl = Acl()
        acl.add_role("staff")
        acl.add_role("editor", "staff")
        acl.add_role("intern", "editor")
        acl.allow("staff", "article")
        acl.deny("editor", "article")
        assert acl.is_allowed("intern", "article") is False
        acl.remove_role("editor")
        assert acl.roles.parent("intern") == "staff"
        assert acl.is_allowed("intern", "article") is True


class TestImportExport:
    """Tests for import / export, clear and snapshots."""

    def test_clear_removes_default(self, acl: Acl) -> None:
        acl.allow("R", "Q")
        acl.clear()
        assert acl.export_permissions() == {}
        assert acl.export_roles() == {}
        assert acl.export_resources() == {}
        assert acl.is_allowed("R", "Q") is False
        assert acl.is_denied("R", "Q") is False

    def test_import_into_non_empty(self, acl: Acl) -> None:
        with pytest.raises(NonEmptyError):
            acl.import_permissions({DEFAULT_KEY: {"ALL": True}})
        acl.add_role("R")
        acl.add_resource("Q")
        with pytest.raises(NonEmptyError):
            acl.import_roles({"X": ""})
        with pytest.raises(NonEmptyError):
            acl.import_resources({"Y": ""})

    def test_import_after_clear(self, acl: Acl) -> None:
        roles = {"GENERAL": "*", "SYSTEM": "GENERAL", "cch": "SYSTEM", "TECH": "*", "rahman": "TECH"}
        resources = {"organization": "*", "device": "*"}
        perms = {
            DEFAULT_KEY: {"ALL": False},
            "SYSTEM::*": {"ALL": True},
            "TECH::device": {"ALL": True},
        }
        acl.clear()
        acl.import_roles(roles)
        acl.import_resources(resources)
        acl.import_permissions(perms)

        assert acl.export_roles() == roles
        assert acl.export_resources() == resources
        assert acl.export_permissions() == perms
        assert acl.is_allowed("cch", "organization") is True
        assert acl.is_allowed("rahman", "device") is True
        assert acl.is_allowed("rahman", "organization") is False
        assert acl.is_allowed("GENERAL", "device") is False

    def test_export_independent(self, acl: Acl) -> None:
        acl.allow("R", "Q")
        exported = acl.export_permissions()
        exported["R::Q"]["ALL"] = False
        assert acl.is_allowed("R", "Q") is True

    def test_snapshot_restore(self, hierarchy: Acl) -> None:
        snapshot = hierarchy.snapshot()
        assert isinstance(snapshot, AclSnapshot)

        restored = Acl()
        with pytest.raises(NonEmptyError):
            restored.restore(snapshot)
        restored.clear()
        restored.restore(AclSnapshot.model_validate_json(snapshot.model_dump_json()))

        assert restored.export_roles() == hierarchy.export_roles()
        assert restored.export_resources() == hierarchy.export_resources()
        assert restored.export_permissions() == hierarchy.export_permissions()
        assert restored.is_allowed("ARO-1-A-1", "ACO-1-C-1") is True

    def test_restore_non_empty_imports_nothing(self, acl: Acl) -> None:
        snapshot = AclSnapshot(roles={"R": ""}, permissions={"R::*": {"ALL": True}})
        with pytest.raises(NonEmptyError):
            acl.restore(snapshot)
        assert acl.export_roles() == {}

    def test_import_cyclic_hierarchy_rejected(self, acl: Acl) -> None:
        acl.clear()
        with pytest.raises(CyclicHierarchyError):
            acl.import_roles({"a": "b", "b": "a"})
        with pytest.raises(CyclicHierarchyError):
            acl.import_resources({"x": "x"})
        assert acl.export_roles() == {}
        assert acl.export_resources() == {}
        acl.allow("a", "x")
        assert acl.is_allowed("a", "x") is True

    def test_restore_cyclic_snapshot_imports_nothing(self, acl: Acl) -> None:
        acl.clear()
        snapshot = AclSnapshot(
            roles={"R": ""},
            resources={"x": "y", "y": "x"},
            permissions={"R::*": {"ALL": True}},
        )
        with pytest.raises(CyclicHierarchyError):
            acl.restore(snapshot)
        assert acl.export_roles() == {}
        assert acl.export_resources() == {}
        assert acl.export_permissions() == {}

    def test_snapshot_rejects_unknown_action(self) -> None:
        with pytest.raises(ValueError, match="Unknown action"):
            AclSnapshot(permissions={"R::Q": {"PUBLISH": True}})

    def test_snapshot_rejects_bad_key(self) -> None:
        with pytest.raises(ValueError, match="Invalid permission key"):
            AclSnapshot(permissions={"RQ": {"ALL": True}})


class TestFellowship:
    """End-to-end scenario with imported hierarchies."""

    @pytest.fixture
    def fellowship(self) -> Acl:
        acl = Acl()
        acl.clear()
        acl.import_roles({"Warriors": "", "Wizards": "", "Hobbits": "", "Visitors": ""})
        with pytest.raises(NonEmptyError):
            acl.import_roles({"Warriors": ""})
        for member, group in (
            ("Gimli", "Warriors"),
            ("Legolas", "Warriors"),
            ("Aragorn", "Warriors"),
            ("Gandalf", "Wizards"),
            ("Frodo", "Hobbits"),
            ("Merry", "Hobbits"),
            ("Pippin", "Hobbits"),
            ("Gollum", "Visitors"),
        ):
            acl.add_role(member, group)
        acl.import_resources({r: "" for r in ("Weapons", "The One Ring", "Salted Pork", "Diplomacy", "Ale")})

        acl.make_default_deny()
        acl.allow("Warriors", "Weapons")
        acl.allow("Warriors", "Ale")
        acl.allow("Aragorn", "Diplomacy")
        acl.deny_action("Gimli", "Weapons", Action.DELETE)
        acl.deny_action("Legolas", "Weapons", Action.DELETE)
        acl.allow("Hobbits", "Ale")
        acl.allow("Frodo", "The One Ring")
        acl.deny("Merry", "Ale")
        acl.allow("Visitors", "Salted Pork")
        return acl

    def test_hobbits(self, fellowship: Acl) -> None:
        assert fellowship.is_allowed("Pippin", "Ale") is True
        assert fellowship.is_denied("Merry", "Ale") is True
        assert fellowship.is_allowed("Frodo", "The One Ring") is True
        assert fellowship.is_allowed("Pippin", "The One Ring") is False

    def test_warriors(self, fellowship: Acl) -> None:
        assert fellowship.is_allowed("Aragorn", "Weapons") is True
        for action in Action.specific():
            assert fellowship.is_allowed_action("Aragorn", "Weapons", action) is True
        for member in ("Legolas", "Gimli"):
            assert fellowship.is_allowed(member, "Weapons") is False
            assert fellowship.is_allowed_action(member, "Weapons", Action.CREATE) is True
            assert fellowship.is_allowed_action(member, "Weapons", Action.READ) is True
            assert fellowship.is_allowed_action(member, "Weapons", Action.UPDATE) is True
            assert fellowship.is_allowed_action(member, "Weapons", Action.DELETE) is False

    def test_visualize_roles(self, fellowship: Acl) -> None:
        tree = fellowship.visualize_roles(SimpleEntry())
        assert tree.startswith("- Warriors\n - Gimli\n - Legolas\n - Aragorn\n- Wizards\n")


class TestVisualize:
    """Tests for the text renderings."""

    def test_permissions(self, acl: Acl) -> None:
        assert acl.visualize_permissions() == "1\n-------\n1- *::*\n\tALL\tfalse\n"

    def test_tree(self, acl: Acl) -> None:
        acl.add_resource("docs")
        acl.add_resource("drafts", "docs")
        acl.add_resource("old", "drafts")
        assert acl.visualize_resources(SimpleEntry()) == "- docs\n - drafts\n  - old\n"

    def test_visualize_all(self, acl: Acl) -> None:
        acl.add_role("admin")
        acl.add_resource("docs")
        out = acl.visualize()
        assert "\tadmin - *\n" in out
        assert "\tdocs - *\n" in out
        assert "1- *::*" in out


class TestLogging:
    """Resolution logs which pair decided."""

    def test_decision_logged(self, acl: Acl, caplog: pytest.LogCaptureFixture) -> None:
        acl.allow("R", "Q")
        with caplog.at_level(logging.DEBUG, logger="archly.acl"):
            acl.is_allowed("R", "Q")
        record = next(r for r in caplog.records if "decided by" in r.getMessage())
        assert record.getMessage() == "allowed decided by R on Q"
        assert record.role == "R"
        assert record.resource == "Q"

    def test_no_trace_adapter_without_debug(
        self, acl: Acl, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def fail(*args: object, **kwargs: object) -> None:
            raise AssertionError("trace logger built with DEBUG disabled")

        monkeypatch.setattr("archly.acl.get_acl_logger", fail)
        acl.allow("R", "Q")
        with caplog.at_level(logging.INFO, logger="archly.acl"):
            assert acl.is_allowed("R", "Q") is True
            assert acl.is_denied("R", "Z") is True
