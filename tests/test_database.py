from conftest import MINUTE, NOW, make_group
from permission_usage.database import UsageStore
from permission_usage.models import FilterSelection, PermissionApp
from permission_usage.pipeline import compute_display_tree


def _store(tmp_path):
    return UsageStore(tmp_path / "nested" / "usage.db")


def test_store_creates_parent_directory(tmp_path):
    _store(tmp_path)
    assert (tmp_path / "nested" / "usage.db").exists()


def test_snapshot_round_trip(tmp_path):
    store = _store(tmp_path)
    camera = make_group("Camera")
    vendor = make_group("Vendor", declaring_package="com.vendor")
    store.upsert_group(camera)
    store.upsert_group(vendor)
    store.upsert_app(PermissionApp("com.maps", "Maps", "icon:maps", system=False))
    store.upsert_app(PermissionApp("com.sys", "Sys", None, system=True))
    store.record_usage("com.maps", camera.name, NOW - 2 * MINUTE)
    store.record_usage("com.maps", camera.name, NOW - MINUTE)
    store.record_usage("com.maps", camera.name, NOW - MINUTE)
    store.add_app_group("com.sys", camera.name)
    store.set_launcher_packages(["com.maps"])

    snapshot = store.load_snapshot()
    assert snapshot.get_groups() == [camera, vendor]
    assert [a.key for a in snapshot.get_apps(camera)] == ["com.maps", "com.sys"]
    maps = snapshot.get_apps(camera)[0]
    assert maps.system is False
    assert [u.access_time for u in snapshot.get_usages(maps, camera)] == [
        NOW - MINUTE,
        NOW - 2 * MINUTE,
    ]
    assert snapshot.get_usages(maps, camera)[0].group_label == "Camera"
    assert snapshot.is_launcher_package(maps)


def test_usages_for_unknown_groups_are_dropped(tmp_path):
    store = _store(tmp_path)
    store.upsert_app(PermissionApp("com.maps", "Maps"))
    store.record_usage("com.maps", "android.permission-group.GONE", NOW)
    snapshot = store.load_snapshot()
    assert snapshot.usages == {}
    assert snapshot.apps_by_group == {}


def test_group_update_replaces_label(tmp_path):
    store = _store(tmp_path)
    store.upsert_group(make_group("Camera"))
    store.upsert_group(make_group("Kamera", name="android.permission-group.CAMERA"))
    assert [g.label for g in store.load_snapshot().groups] == ["Kamera"]


def test_clear_usages(tmp_path):
    store = _store(tmp_path)
    camera = make_group("Camera")
    store.upsert_group(camera)
    store.upsert_app(PermissionApp("com.a", "A"))
    store.upsert_app(PermissionApp("com.b", "B"))
    store.record_usage("com.a", camera.name, NOW)
    store.record_usage("com.b", camera.name, NOW)
    store.clear_usages("com.a")
    assert list(store.load_snapshot().usages) == [("com.b", camera.name)]
    store.clear_usages()
    assert store.load_snapshot().usages == {}


def test_ui_state_defaults_and_round_trip(tmp_path):
    store = _store(tmp_path)
    assert store.load_ui_state("usage") == FilterSelection()

    selection = FilterSelection(group_label="Camera", group_index=1, time_index=2, show_system=True)
    store.save_ui_state("usage", selection)
    assert store.load_ui_state("usage") == selection
    assert store.load_ui_state("other") == FilterSelection()

    store.save_ui_state("usage", FilterSelection(time_index=4))
    assert store.load_ui_state("usage").time_index == 4


def test_stored_snapshot_feeds_pipeline(tmp_path, label_key):
    store = _store(tmp_path)
    for label in ["Location", "Camera"]:
        store.upsert_group(make_group(label))
    store.upsert_app(PermissionApp("com.maps", "Maps", "icon:maps", system=True))
    store.record_usage("com.maps", "android.permission-group.LOCATION", NOW - MINUTE)
    store.record_usage("com.maps", "android.permission-group.CAMERA", NOW - 3 * MINUTE)
    store.set_launcher_packages(["com.maps"])

    view = compute_display_tree(store.load_snapshot(), FilterSelection(), NOW, sort_key=label_key)
    (entry,) = view.entries
    assert entry.title == "Maps"
    assert [c.summary for c in entry.children] == [
        "Accessed Location, 1 minute ago",
        "Accessed Camera, 3 minutes ago",
    ]
    assert view.has_system_apps is False
