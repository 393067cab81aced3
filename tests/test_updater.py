"""Tests for FrameworkUpdater: update checks, single and batch updates."""

import json

import pytest
import pytest_asyncio
from steering_frameworks import FrameworkConflictError
from steering_frameworks import FrameworkIOError
from steering_frameworks import FrameworkManager
from steering_frameworks import FrameworkNotInstalledError
from steering_frameworks import LedgerCorruptError
from steering_frameworks import UpdateOutcome
from steering_frameworks import UpdateRefusedError
from steering_frameworks import UpdateResolution
from steering_frameworks import content_hash


def _backups(directory):
    return sorted(p for p in directory.iterdir() if ".backup-" in p.name)


@pytest_asyncio.fixture
async def installed(manager, settings):
    for framework_id in ["tdd-bdd-strategy", "security-baseline"]:
        await manager.install_framework(framework_id)
    return settings.steering_path / "strategy-tdd-bdd.md"


class TestCheckForUpdates:
    @pytest.mark.asyncio
    async def test_no_updates(self, manager, installed):
        assert await manager.check_for_updates() == []

    @pytest.mark.asyncio
    async def test_newer_version_reported(self, manager, resources, installed):
        resources.release("tdd-bdd-strategy", "1.1.0")
        manager.reload()

        updates = await manager.check_for_updates()

        assert len(updates) == 1
        assert updates[0].framework_id == "tdd-bdd-strategy"
        assert updates[0].current_version == "1.0.0"
        assert updates[0].latest_version == "1.1.0"
        assert updates[0].change_summary

    @pytest.mark.asyncio
    async def test_older_catalog_version_not_reported(self, manager, resources, installed):
        """Test a catalog downgrade is not offered as an update."""
        resources.release("tdd-bdd-strategy", "0.9.0")
        manager.reload()

        assert await manager.check_for_updates() == []

    @pytest.mark.asyncio
    async def test_prerelease_precedence(self, manager, resources, installed):
        resources.release("tdd-bdd-strategy", "1.1.0-rc.1")
        manager.reload()

        assert [u.latest_version for u in await manager.check_for_updates()] == ["1.1.0-rc.1"]

    @pytest.mark.asyncio
    async def test_invalid_ledger_version_is_corruption(self, manager, settings, installed):
        """Test a non-semver ledger version surfaces as a corrupt ledger, also in batch."""
        data = json.loads(settings.ledger_path.read_text())
        data["frameworks"]["tdd-bdd-strategy"]["version"] = "latest"
        settings.ledger_path.write_text(json.dumps(data))

        with pytest.raises(LedgerCorruptError):
            await manager.check_for_updates()
        with pytest.raises(LedgerCorruptError):
            await manager.update_all_frameworks()

    @pytest.mark.asyncio
    async def test_preview_identical_content_is_empty(self, manager, installed):
        assert await manager.preview_update("tdd-bdd-strategy") == ""

    @pytest.mark.asyncio
    async def test_preview_not_installed(self, manager):
        with pytest.raises(FrameworkNotInstalledError):
            await manager.preview_update("cloud-native")

    @pytest.mark.asyncio
    async def test_framework_removed_from_catalog_skipped(self, manager, resources, installed):
        resources.frameworks = [f for f in resources.frameworks if f["id"] != "tdd-bdd-strategy"]
        resources.release("security-baseline", "1.0.1")
        manager.reload()

        updates = await manager.check_for_updates()

        assert [u.framework_id for u in updates] == ["security-baseline"]


class TestUpdateFramework:
    @pytest.mark.asyncio
    async def test_update_unmodified(self, manager, resources, installed):
        new_content = resources.release("tdd-bdd-strategy", "1.1.0")
        manager.reload()

        result = await manager.update_framework("tdd-bdd-strategy")

        assert result.outcome == UpdateOutcome.UPDATED
        assert result.previous_version == "1.0.0"
        assert result.version == "1.1.0"
        assert result.customized is False
        assert result.backup_path is None
        assert installed.read_text() == new_content

        record = await manager.get_installed_record("tdd-bdd-strategy")
        assert record.version == "1.1.0"
        assert record.content_hash == content_hash(new_content)
        assert record.customized is False
        assert await manager.check_for_updates() == []

    @pytest.mark.asyncio
    async def test_up_to_date_refused(self, manager, installed):
        with pytest.raises(UpdateRefusedError) as exc_info:
            await manager.update_framework("tdd-bdd-strategy")

        assert exc_info.value.context["installed_version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_downgrade_refused(self, manager, resources, installed):
        """Test an older catalog version never replaces installed content."""
        before = installed.read_text()
        resources.release("tdd-bdd-strategy", "0.9.0")
        manager.reload()

        with pytest.raises(UpdateRefusedError):
            await manager.update_framework("tdd-bdd-strategy")

        assert installed.read_text() == before
        assert (await manager.get_installed_record("tdd-bdd-strategy")).version == "1.0.0"

    @pytest.mark.asyncio
    async def test_not_installed(self, manager):
        with pytest.raises(FrameworkNotInstalledError):
            await manager.update_framework("cloud-native")

    @pytest.mark.asyncio
    async def test_file_missing(self, manager, resources, installed):
        resources.release("tdd-bdd-strategy", "1.1.0")
        manager.reload()
        installed.unlink()

        with pytest.raises(FrameworkNotInstalledError):
            await manager.update_framework("tdd-bdd-strategy")


class TestCustomizedUpdate:
    """Customized frameworks need an explicit resolution."""

    @pytest_asyncio.fixture
    async def customized(self, manager, resources, installed):
        installed.write_text(installed.read_text() + "\n- Team-specific rule\n")
        resources.release("tdd-bdd-strategy", "1.1.0")
        manager.reload()
        return installed

    @pytest.mark.asyncio
    async def test_conflict_without_resolution(self, manager, settings, customized):
        before = customized.read_text()

        with pytest.raises(FrameworkConflictError):
            await manager.update_framework("tdd-bdd-strategy")

        assert customized.read_text() == before
        assert (await manager.get_installed_record("tdd-bdd-strategy")).version == "1.0.0"
        assert _backups(settings.steering_path) == []

    @pytest.mark.asyncio
    async def test_cancel(self, manager, customized):
        before = customized.read_text()

        result = await manager.update_framework("tdd-bdd-strategy", UpdateResolution.CANCEL)

        assert result.outcome == UpdateOutcome.CANCELLED
        assert result.customized is True
        assert customized.read_text() == before
        assert (await manager.get_installed_record("tdd-bdd-strategy")).version == "1.0.0"

    @pytest.mark.asyncio
    async def test_backup_and_update(self, manager, settings, resources, customized):
        before = customized.read_text()

        result = await manager.update_framework("tdd-bdd-strategy", UpdateResolution.BACKUP_AND_UPDATE)

        assert result.outcome == UpdateOutcome.UPDATED
        assert result.customized is True
        assert result.backup_path.read_text() == before
        assert _backups(settings.steering_path) == [result.backup_path]
        assert customized.read_text() == resources.content("tdd-bdd-strategy")

        record = await manager.get_installed_record("tdd-bdd-strategy")
        assert record.version == "1.1.0"
        assert record.customized is False
        assert record.customized_at is None

    @pytest.mark.asyncio
    async def test_missing_resource_leaves_no_backup(self, manager, settings, resources, customized):
        """Test an unreadable canonical file fails the update before anything is written."""
        before = customized.read_text()
        resources.content_path("tdd-bdd-strategy").unlink()

        with pytest.raises(FrameworkIOError):
            await manager.update_framework("tdd-bdd-strategy", UpdateResolution.BACKUP_AND_UPDATE)

        assert _backups(settings.steering_path) == []
        assert customized.read_text() == before
        assert (await manager.get_installed_record("tdd-bdd-strategy")).version == "1.0.0"

    @pytest.mark.asyncio
    async def test_preview_shows_local_edits_and_new_content(self, manager, customized):
        diff = await manager.preview_update("tdd-bdd-strategy")

        assert diff.startswith("--- strategy-tdd-bdd.md (installed)\n+++ strategy-tdd-bdd.md (1.1.0)\n")
        assert "\n-- Team-specific rule\n" in diff
        assert "\n-Version 1.0.0\n" in diff
        assert "\n+Version 1.1.0\n" in diff

    @pytest.mark.asyncio
    async def test_discard_and_update(self, manager, settings, resources, customized):
        result = await manager.update_framework("tdd-bdd-strategy", UpdateResolution.DISCARD_AND_UPDATE)

        assert result.backup_path is None
        assert _backups(settings.steering_path) == []
        assert customized.read_text() == resources.content("tdd-bdd-strategy")

    @pytest.mark.asyncio
    async def test_flagged_record_conflicts_even_if_content_matches(self, manager, resources, installed):
        await manager.mark_framework_as_customized("tdd-bdd-strategy")
        resources.release("tdd-bdd-strategy", "1.1.0")
        manager.reload()

        with pytest.raises(FrameworkConflictError):
            await manager.update_framework("tdd-bdd-strategy")

    @pytest.mark.asyncio
    async def test_ledger_failure_rolls_back(self, settings, resources, failing_file_system):
        manager = FrameworkManager(settings, file_system=failing_file_system)
        await manager.install_framework("tdd-bdd-strategy")
        path = settings.steering_path / "strategy-tdd-bdd.md"
        path.write_text(path.read_text() + "local edit\n")
        before = path.read_text()
        resources.release("tdd-bdd-strategy", "1.1.0")
        manager.reload()
        failing_file_system.fail_on = {"installed-frameworks.json"}

        with pytest.raises(FrameworkIOError):
            await manager.update_framework("tdd-bdd-strategy", UpdateResolution.BACKUP_AND_UPDATE)

        assert path.read_text() == before
        assert _backups(settings.steering_path) == []
        assert (await manager.get_installed_record("tdd-bdd-strategy")).version == "1.0.0"


class TestUpdateAll:
    @pytest.mark.asyncio
    async def test_updates_all_available(self, manager, resources, installed):
        resources.release("tdd-bdd-strategy", "1.1.0")
        resources.release("security-baseline", "2.0.0")
        manager.reload()
        progress = []

        result = await manager.update_all_frameworks(on_progress=lambda done, total, fid: progress.append((done, total, fid)))

        assert {r.framework_id for r in result.succeeded} == {"tdd-bdd-strategy", "security-baseline"}
        assert result.failed == []
        assert [p[:2] for p in progress] == [(1, 2), (2, 2)]
        assert await manager.check_for_updates() == []

    @pytest.mark.asyncio
    async def test_failures_isolated(self, manager, resources, installed):
        """Test one failing framework does not stop the rest of the batch."""
        resources.release("tdd-bdd-strategy", "1.1.0")
        resources.release("security-baseline", "2.0.0")
        manager.reload()
        installed.write_text("customized\n")

        result = await manager.update_all_frameworks()

        assert [r.framework_id for r in result.succeeded] == ["security-baseline"]
        assert [f.framework_id for f in result.failed] == ["tdd-bdd-strategy"]
        assert "local changes" in result.failed[0].error
        assert installed.read_text() == "customized\n"

    @pytest.mark.asyncio
    async def test_resolver_consulted_only_for_conflicts(self, manager, resources, installed):
        resources.release("tdd-bdd-strategy", "1.1.0")
        resources.release("security-baseline", "2.0.0")
        manager.reload()
        installed.write_text("customized\n")
        asked = []

        def resolver(update):
            asked.append(update.framework_id)
            return UpdateResolution.BACKUP_AND_UPDATE

        result = await manager.update_all_frameworks(resolver=resolver)

        assert asked == ["tdd-bdd-strategy"]
        assert result.failed == []
        updated = {r.framework_id: r for r in result.succeeded}
        assert updated["tdd-bdd-strategy"].backup_path.read_text() == "customized\n"

    @pytest.mark.asyncio
    async def test_explicit_ids_report_unknown_and_up_to_date(self, manager, installed):
        result = await manager.update_all_frameworks(framework_ids=["tdd-bdd-strategy", "nope"])

        assert result.succeeded == []
        assert [f.framework_id for f in result.failed] == ["tdd-bdd-strategy", "nope"]
