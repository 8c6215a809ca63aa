"""永久清除（定时清理与立即删除）的服务层测试。"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from app.packages.dataroom.core.exceptions import NotFoundError
from app.packages.dataroom.models import DataroomDocument, DataroomFolder, Document, TrashItem
from app.packages.dataroom.services import purge_service as purge_module
from app.packages.dataroom.services.purge_service import PurgeService, purge_service
from app.packages.dataroom.services.trash_service import trash_service

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

pytestmark = pytest.mark.usefixtures("isolate_expired_items")


@pytest.fixture()
def alerts(monkeypatch):
    sent = []
    monkeypatch.setattr(
        purge_module.alert_service,
        "log",
        lambda message, type="cron", mention=False: sent.append((message, type, mention)),
    )
    return sent


def _expire(db, trash_ids, *, purge_at=NOW - timedelta(minutes=1), deleted_at=None):
    values = {"purge_at": purge_at}
    if deleted_at is not None:
        values["deleted_at"] = deleted_at
    db.execute(update(TrashItem).where(TrashItem.id.in_(list(trash_ids))).values(**values))
    db.commit()


def _trash_ids(db, dataroom_id):
    db.expire_all()
    return {item.id for item in db.query(TrashItem).filter(TrashItem.dataroom_id == dataroom_id).all()}


def test_purge_expired_handles_folders_first_and_skips_cascaded_items(
    monkeypatch, alerts, db_session_fixture, make_dataroom, make_folder, make_document
):
    db = db_session_fixture
    dataroom = make_dataroom()
    early = make_document(dataroom, "Early.pdf")
    late = make_document(dataroom, "Late.pdf")
    folder = make_folder(dataroom, "Board")
    minutes = make_document(dataroom, "Minutes.pdf", folder)

    early_item = trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=early.id)
    late_item = trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=late.id)
    folder_item = trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=folder.id)
    early_id, late_id, folder_trash_id = early_item.id, late_item.id, folder_item.id
    folder_id, minutes_id, early_doc_id = folder.id, minutes.id, early.id
    all_ids = _trash_ids(db, dataroom.id)
    (minutes_trash_id,) = all_ids - {early_id, late_id, folder_trash_id}
    _expire(db, all_ids)
    _expire(db, [early_id], deleted_at=NOW - timedelta(days=40))
    _expire(db, [late_id], deleted_at=NOW - timedelta(days=35))
    _expire(db, [folder_trash_id, minutes_trash_id], deleted_at=NOW - timedelta(days=31))

    order = []

    def recording_purge(session, *, trash_id, dataroom_id):
        order.append(trash_id)
        return PurgeService._purge_trash_item(purge_service, session, trash_id=trash_id, dataroom_id=dataroom_id)

    monkeypatch.setattr(purge_service, "_purge_trash_item", recording_purge)

    report = purge_service.purge_expired(db, now=NOW)

    assert order == [folder_trash_id, early_id, late_id, minutes_trash_id]
    assert report.total_expired == 4
    assert report.purged_count == 3
    assert report.skipped_count == 1
    assert report.errors == []
    assert _trash_ids(db, dataroom.id) == set()
    assert db.get(DataroomFolder, folder_id) is None
    assert db.get(DataroomDocument, minutes_id) is None
    assert db.get(DataroomDocument, early_doc_id) is None
    assert alerts[-1][2] is False
    assert alerts[-1][0].startswith("Auto-purge completed: 3/4 items purged successfully")


def test_purge_expired_continues_after_item_failure(
    monkeypatch, alerts, db_session_fixture, make_dataroom, make_document
):
    db = db_session_fixture
    dataroom = make_dataroom()
    documents = [make_document(dataroom, f"Doc-{index}.pdf") for index in range(3)]
    items = [
        trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=document.id)
        for document in documents
    ]
    item_ids = [item.id for item in items]
    for offset, trash_id in enumerate(item_ids):
        _expire(db, [trash_id], deleted_at=NOW - timedelta(days=40 - offset))
    failing_id = item_ids[1]

    def flaky_purge(session, *, trash_id, dataroom_id):
        if trash_id == failing_id:
            raise RuntimeError("storage unavailable")
        return PurgeService._purge_trash_item(purge_service, session, trash_id=trash_id, dataroom_id=dataroom_id)

    monkeypatch.setattr(purge_service, "_purge_trash_item", flaky_purge)

    report = purge_service.purge_expired(db, now=NOW)

    assert report.purged_count == 2
    assert report.total_expired == 3
    assert len(report.errors) == 1
    assert report.errors[0]["trash_id"] == failing_id
    assert report.errors[0]["dataroom_id"] == dataroom.id
    assert "storage unavailable" in report.errors[0]["error"]
    assert _trash_ids(db, dataroom.id) == {failing_id}
    assert db.get(DataroomDocument, documents[1].id) is not None

    mentioned = [message for message, _, mention in alerts if mention]
    assert any(str(failing_id) in message for message in mentioned)
    assert "2/3" in alerts[-1][0]
    assert alerts[-1][2] is True


def test_purge_expired_boundary_is_inclusive(alerts, db_session_fixture, make_dataroom, make_document):
    db = db_session_fixture
    dataroom = make_dataroom()
    due = make_document(dataroom, "Due.pdf")
    pending = make_document(dataroom, "Pending.pdf")
    due_item = trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=due.id)
    pending_item = trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=pending.id)
    due_id, pending_id = due_item.id, pending_item.id
    _expire(db, [due_id], purge_at=NOW)
    _expire(db, [pending_id], purge_at=NOW + timedelta(seconds=1))

    report = purge_service.purge_expired(db, now=NOW)

    assert report.total_expired == 1
    assert report.purged_count == 1
    assert _trash_ids(db, dataroom.id) == {pending_id}


def test_purge_expired_with_nothing_due(alerts, db_session_fixture):
    report = purge_service.purge_expired(db_session_fixture, now=NOW)

    assert report.as_dict() == {"purged_count": 0, "total_expired": 0, "skipped_count": 0, "errors": []}
    assert alerts[-1][0].startswith("Auto-purge completed: 0/0")


def test_purge_recomputes_subtree_including_later_additions(
    alerts, db_session_fixture, make_dataroom, make_folder, make_document
):
    db = db_session_fixture
    dataroom = make_dataroom()
    folder = make_folder(dataroom, "Deals")
    make_document(dataroom, "Term Sheet.pdf", folder)
    folder_id = folder.id
    folder_item = trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=folder_id)
    folder_trash_id = folder_item.id

    # 放入回收站之后才写入该文件夹的文档，没有对应的回收站条目
    document = Document(team_id=dataroom.team_id, name="Late Upload.pdf", type="pdf")
    db.add(document)
    db.flush()
    straggler = DataroomDocument(dataroom_id=dataroom.id, document_id=document.id, folder_id=folder_id)
    db.add(straggler)
    db.commit()
    straggler_id = straggler.id

    result = purge_service.purge_item(db, dataroom_id=dataroom.id, trash_id=folder_trash_id)

    assert result == {"trash_id": folder_trash_id}
    db.expire_all()
    assert db.get(DataroomDocument, straggler_id) is None
    assert db.get(DataroomFolder, folder_id) is None
    assert _trash_ids(db, dataroom.id) == set()


def test_purge_item_unknown_or_foreign_trash_id(db_session_fixture, make_dataroom, make_document):
    db = db_session_fixture
    dataroom = make_dataroom()
    other = make_dataroom()
    document = make_document(other, "Foreign.pdf")
    item = trash_service.trash_document(db, dataroom_id=other.id, dataroom_document_id=document.id)

    with pytest.raises(NotFoundError):
        purge_service.purge_item(db, dataroom_id=dataroom.id, trash_id=item.id)
    with pytest.raises(NotFoundError):
        purge_service.purge_item(db, dataroom_id=dataroom.id, trash_id=999999)

    assert _trash_ids(db, other.id) == {item.id}


def test_purge_expired_leaves_unexpired_items_in_other_folders(
    alerts, db_session_fixture, make_dataroom, make_folder, make_document
):
    db = db_session_fixture
    dataroom = make_dataroom()
    expired_folder = make_folder(dataroom, "Expired")
    make_document(dataroom, "Inside.pdf", expired_folder)
    other_folder = make_folder(dataroom, "Other")
    kept = make_document(dataroom, "Kept.pdf", other_folder)
    expired_folder_id, kept_id = expired_folder.id, kept.id

    trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=expired_folder_id)
    kept_item = trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=kept_id)
    kept_trash_id = kept_item.id
    _expire(db, _trash_ids(db, dataroom.id) - {kept_trash_id})
    _expire(db, [kept_trash_id], purge_at=NOW + timedelta(days=1))

    report = purge_service.purge_expired(db, now=NOW)

    assert report.purged_count == 1
    assert report.skipped_count == 1
    assert _trash_ids(db, dataroom.id) == {kept_trash_id}
    assert db.get(DataroomFolder, expired_folder_id) is None
    assert db.get(DataroomDocument, kept_id) is not None
