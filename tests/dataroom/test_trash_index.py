"""移入回收站与回收站浏览的服务层测试。"""

from datetime import timedelta

import pytest

from app.packages.dataroom.core.config import get_settings
from app.packages.dataroom.core.enums import ItemTypeEnum
from app.packages.dataroom.core.exceptions import NotFoundError
from app.packages.dataroom.models import DataroomDocument, DataroomFolder, TrashItem
from app.packages.dataroom.services.trash_service import build_trash_tree, trash_service


def _trash_rows(db, dataroom_id):
    db.expire_all()
    return {
        (item.item_type, item.item_id): item
        for item in db.query(TrashItem).filter(TrashItem.dataroom_id == dataroom_id).all()
    }


def test_trash_folder_indexes_whole_subtree(db_session_fixture, make_dataroom, make_folder, make_document):
    db = db_session_fixture
    dataroom = make_dataroom()
    finance = make_folder(dataroom, "Finance")
    q1 = make_folder(dataroom, "Q1", parent="/finance")
    report = make_document(dataroom, "Report.pdf", q1)
    loose = make_document(dataroom, "Loose.pdf")

    root_item = trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=finance.id, user_id=1)

    rows = _trash_rows(db, dataroom.id)
    assert len(rows) == 3
    folder_row = rows[(ItemTypeEnum.DATAROOM_FOLDER.value, finance.id)]
    sub_row = rows[(ItemTypeEnum.DATAROOM_FOLDER.value, q1.id)]
    doc_row = rows[(ItemTypeEnum.DATAROOM_DOCUMENT.value, report.id)]

    assert root_item.id == folder_row.id
    assert folder_row.parent_id is None
    assert folder_row.trash_path == "/finance"
    assert folder_row.deleted_by == 1
    assert sub_row.parent_id == folder_row.id
    assert sub_row.trash_path == "/finance/q1"
    assert doc_row.parent_id == sub_row.id
    assert doc_row.trash_path == "/finance/q1/report-pdf"
    assert doc_row.full_path == "/finance/q1/report-pdf"
    assert folder_row.purge_at - folder_row.deleted_at == timedelta(days=get_settings().trash_retention_days)

    assert db.get(DataroomFolder, finance.id).removed_at is not None
    assert db.get(DataroomFolder, q1.id).removed_at is not None
    assert db.get(DataroomDocument, report.id).removed_at is not None
    assert db.get(DataroomDocument, loose.id).removed_at is None


def test_trash_folder_relinks_previously_trashed_document(
    db_session_fixture, make_dataroom, make_folder, make_document
):
    db = db_session_fixture
    dataroom = make_dataroom()
    finance = make_folder(dataroom, "Finance")
    report = make_document(dataroom, "Report.pdf", finance)

    doc_item = trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=report.id)
    assert doc_item.parent_id is None
    assert doc_item.trash_path == "/report-pdf"
    assert doc_item.full_path == "/finance/report-pdf"
    original_deleted_at = doc_item.deleted_at
    original_purge_at = doc_item.purge_at

    folder_item = trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=finance.id)

    rows = _trash_rows(db, dataroom.id)
    assert len(rows) == 2
    relinked = rows[(ItemTypeEnum.DATAROOM_DOCUMENT.value, report.id)]
    assert relinked.id == doc_item.id
    assert relinked.parent_id == folder_item.id
    assert relinked.trash_path == "/finance/report-pdf"
    assert relinked.deleted_at == original_deleted_at
    assert relinked.purge_at == original_purge_at


def test_trash_rejects_items_already_in_trash(db_session_fixture, make_dataroom, make_folder, make_document):
    db = db_session_fixture
    dataroom = make_dataroom()
    folder = make_folder(dataroom, "Legal")
    document = make_document(dataroom, "Contract.pdf")

    trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=folder.id)
    trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=document.id)

    with pytest.raises(NotFoundError):
        trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=folder.id)
    with pytest.raises(NotFoundError):
        trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=document.id)


def test_list_trash_root_only_and_tree(db_session_fixture, make_dataroom, make_folder, make_document):
    db = db_session_fixture
    dataroom = make_dataroom()
    finance = make_folder(dataroom, "Finance")
    q1 = make_folder(dataroom, "Q1", parent="/finance")
    make_document(dataroom, "Report.pdf", q1)
    make_document(dataroom, "Summary.pdf", finance)
    loose = make_document(dataroom, "Loose.pdf")

    trash_service.trash_folder(db, dataroom_id=dataroom.id, folder_id=finance.id)
    trash_service.trash_document(db, dataroom_id=dataroom.id, dataroom_document_id=loose.id)

    roots = trash_service.list_trash(db, dataroom_id=dataroom.id, root_only=True)
    assert "tree" not in roots
    assert sorted(item["name"] for item in roots["items"]) == ["Finance", "Loose.pdf"]

    full = trash_service.list_trash(db, dataroom_id=dataroom.id)
    assert len(full["items"]) == 5
    tree = {node["name"]: node for node in full["tree"]}
    assert set(tree) == {"Finance", "Loose.pdf"}
    finance_node = tree["Finance"]
    assert [node["name"] for node in finance_node["child_folders"]] == ["Q1"]
    assert [node["name"] for node in finance_node["documents"]] == ["Summary.pdf"]
    assert [node["name"] for node in finance_node["child_folders"][0]["documents"]] == ["Report.pdf"]
    assert "child_folders" not in tree["Loose.pdf"]


def test_build_trash_tree_never_nests_node_under_itself():
    items = [
        {"id": 1, "parent_id": 1, "item_type": ItemTypeEnum.DATAROOM_FOLDER.value, "name": "loop"},
        {"id": 2, "parent_id": 99, "item_type": ItemTypeEnum.DATAROOM_DOCUMENT.value, "name": "orphan"},
        {"id": 3, "parent_id": 2, "item_type": ItemTypeEnum.DATAROOM_DOCUMENT.value, "name": "under-document"},
    ]

    roots = build_trash_tree(items)

    assert [node["id"] for node in roots] == [1, 2, 3]
    assert roots[0]["child_folders"] == []
    assert roots[0]["documents"] == []
