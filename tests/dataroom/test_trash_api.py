"""数据室回收站接口的集成测试：访问控制、移入回收站、恢复、移动与立即删除。"""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from app.packages.dataroom.core.enums import TeamMemberStatusEnum, TeamRoleEnum
from app.packages.dataroom.models import OperationLog, Team


def _base(dataroom) -> str:
    return f"/api/v1/teams/{dataroom.team_id}/datarooms/{dataroom.id}"


def _member_headers(login, make_member, role=TeamRoleEnum.MEMBER, status=TeamMemberStatusEnum.ACTIVE, join=True):
    user = make_member(role=role, status=status, join=join)
    return login(user.username, "member123")


def test_member_cannot_trash_but_admin_can(client: TestClient, login, make_member, make_dataroom, make_folder):
    dataroom = make_dataroom()
    folder = make_folder(dataroom, "Finance")
    member_headers = _member_headers(login, make_member)

    denied = client.delete(f"{_base(dataroom)}/folders/manage/{folder.id}", headers=member_headers)
    assert denied.status_code == 403
    assert denied.json()["msg"] == "仅团队管理员或经理可以执行删除操作"

    allowed = client.delete(f"{_base(dataroom)}/folders/manage/{folder.id}", headers=login())
    assert allowed.status_code == 200
    payload = allowed.json()
    assert payload["code"] == 200
    assert payload["data"]["item_type"] == "DATAROOM_FOLDER"
    assert payload["data"]["trash_path"] == "/finance"


def test_manager_can_trash_document(client: TestClient, login, make_member, make_dataroom, make_document):
    dataroom = make_dataroom()
    document = make_document(dataroom, "Pitch Deck.pdf")
    headers = _member_headers(login, make_member, role=TeamRoleEnum.MANAGER)

    response = client.delete(f"{_base(dataroom)}/documents/{document.id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Pitch Deck.pdf"


def test_non_member_and_blocked_member_are_unauthorized(client: TestClient, login, make_member, make_dataroom):
    dataroom = make_dataroom()
    outsider = _member_headers(login, make_member, join=False)
    blocked = _member_headers(login, make_member, status=TeamMemberStatusEnum.BLOCKED)

    for headers in (outsider, blocked):
        response = client.get(f"{_base(dataroom)}/trash", headers=headers)
        assert response.status_code == 401
        assert response.json()["code"] == 401

    anonymous = client.get(f"{_base(dataroom)}/trash")
    assert anonymous.status_code == 401


def test_dataroom_of_another_team_is_not_found(client: TestClient, login, db_session_fixture, make_dataroom):
    other_team = Team(name=f"其他团队-{uuid.uuid4().hex[:6]}")
    db_session_fixture.add(other_team)
    db_session_fixture.commit()
    foreign = make_dataroom(team_id=other_team.id)
    own = make_dataroom()

    response = client.get(f"/api/v1/teams/{own.team_id}/datarooms/{foreign.id}/trash", headers=login())

    assert response.status_code == 404
    assert response.json()["msg"] == "数据室不存在"


def test_list_trash_and_restore_flow(client: TestClient, login, make_member, make_dataroom, make_folder, make_document):
    dataroom = make_dataroom()
    folder = make_folder(dataroom, "Legal")
    make_document(dataroom, "NDA.pdf", folder)
    admin = login()
    client.delete(f"{_base(dataroom)}/folders/manage/{folder.id}", headers=admin)

    roots = client.get(f"{_base(dataroom)}/trash", params={"root": True}, headers=admin).json()["data"]
    assert [item["name"] for item in roots["items"]] == ["Legal"]
    assert roots.get("tree") is None

    full = client.get(f"{_base(dataroom)}/trash", headers=admin).json()["data"]
    assert len(full["items"]) == 2
    document_item = next(item for item in full["items"] if item["item_type"] == "DATAROOM_DOCUMENT")
    assert full["tree"][0]["documents"][0]["id"] == document_item["id"]

    blocked = client.put(f"{_base(dataroom)}/trash/manage/{document_item['id']}/restore", headers=admin)
    assert blocked.status_code == 400
    assert blocked.json()["data"]["reason"] == "restore_path_not_found"

    # 普通成员可以恢复
    member = _member_headers(login, make_member)
    restored = client.put(f"{_base(dataroom)}/trash/manage/{roots['items'][0]['id']}/restore", headers=member)
    assert restored.status_code == 200
    assert restored.json()["data"]["restored_folders"] == 1
    assert restored.json()["data"]["restored_documents"] == 1

    empty = client.get(f"{_base(dataroom)}/trash", headers=admin).json()["data"]
    assert empty["items"] == []
    folders = client.get(f"{_base(dataroom)}/folders", headers=admin).json()["data"]
    assert [item["name"] for item in folders] == ["Legal"]


def test_restore_unknown_item_returns_404(client: TestClient, login, make_dataroom):
    dataroom = make_dataroom()

    response = client.put(f"{_base(dataroom)}/trash/manage/999999/restore", headers=login())

    assert response.status_code == 404


def test_bulk_restore_reports_per_item_results(client: TestClient, login, make_dataroom, make_folder, make_document):
    dataroom = make_dataroom()
    folder = make_folder(dataroom, "Ops")
    inner = make_document(dataroom, "Runbook.pdf", folder)
    loose = make_document(dataroom, "Roadmap.pdf")
    admin = login()
    loose_item = client.delete(f"{_base(dataroom)}/documents/{loose.id}", headers=admin).json()["data"]
    client.delete(f"{_base(dataroom)}/folders/manage/{folder.id}", headers=admin)
    items = client.get(f"{_base(dataroom)}/trash", headers=admin).json()["data"]["items"]
    inner_item = next(item for item in items if item["item_id"] == inner.id and item["item_type"] == "DATAROOM_DOCUMENT")

    response = client.post(
        f"{_base(dataroom)}/trash/manage/restore",
        headers=admin,
        json={
            "items": [
                {"id": loose_item["id"], "item_type": "DATAROOM_DOCUMENT"},
                {"id": inner_item["id"], "item_type": "DATAROOM_DOCUMENT"},
            ]
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["msg"] == "部分条目恢复失败"
    assert payload["data"]["restored_count"] == 1
    assert payload["data"]["failed"][0]["trash_id"] == inner_item["id"]
    assert payload["data"]["failed"][0]["reason"] == "restore_path_not_found"


def test_bulk_restore_requires_items(client: TestClient, login, make_dataroom):
    dataroom = make_dataroom()

    response = client.post(f"{_base(dataroom)}/trash/manage/restore", headers=login(), json={"items": []})

    assert response.status_code == 422
    assert response.json()["code"] == 422


def test_move_items_to_root(client: TestClient, login, make_dataroom, make_folder, make_document):
    dataroom = make_dataroom()
    folder = make_folder(dataroom, "Drafts")
    document = make_document(dataroom, "Draft.pdf", folder)
    admin = login()
    doc_item = client.delete(f"{_base(dataroom)}/documents/{document.id}", headers=admin).json()["data"]

    response = client.post(
        f"{_base(dataroom)}/trash/manage/move",
        headers=admin,
        json={"trash_item_ids": [doc_item["id"]], "target_folder_id": None},
    )

    assert response.status_code == 200
    moved = response.json()["data"]["moved"]
    assert moved == [{"trash_id": doc_item["id"], "item_type": "DATAROOM_DOCUMENT", "item_id": document.id, "path": None}]
    assert client.get(f"{_base(dataroom)}/trash", headers=admin).json()["data"]["items"] == []


def test_purge_item_requires_manager_role(client: TestClient, login, make_member, make_dataroom, make_document):
    dataroom = make_dataroom()
    document = make_document(dataroom, "Old.pdf")
    admin = login()
    item = client.delete(f"{_base(dataroom)}/documents/{document.id}", headers=admin).json()["data"]

    denied = client.delete(f"{_base(dataroom)}/trash/manage/{item['id']}", headers=_member_headers(login, make_member))
    assert denied.status_code == 403

    purged = client.delete(f"{_base(dataroom)}/trash/manage/{item['id']}", headers=admin)
    assert purged.status_code == 200
    assert purged.json()["data"] == {"trash_id": item["id"]}

    again = client.delete(f"{_base(dataroom)}/trash/manage/{item['id']}", headers=admin)
    assert again.status_code == 404


def test_create_folder_deduplicates_names_including_trashed(client: TestClient, login, make_dataroom):
    dataroom = make_dataroom()
    admin = login()

    first = client.post(f"{_base(dataroom)}/folders", headers=admin, json={"name": "Reports"})
    assert first.status_code == 201
    assert first.json()["data"]["path"] == "/reports"

    second = client.post(f"{_base(dataroom)}/folders", headers=admin, json={"name": "Reports"})
    assert second.json()["data"]["name"] == "Reports (1)"
    assert second.json()["data"]["path"] == "/reports-1"

    client.delete(f"{_base(dataroom)}/folders/manage/{first.json()['data']['id']}", headers=admin)
    third = client.post(f"{_base(dataroom)}/folders", headers=admin, json={"name": "Reports"})
    assert third.json()["data"]["name"] == "Reports (2)"

    nested = client.post(f"{_base(dataroom)}/folders", headers=admin, json={"name": "Q1", "path": "/reports-1/"})
    assert nested.status_code == 201
    assert nested.json()["data"]["path"] == "/reports-1/q1"

    missing_parent = client.post(f"{_base(dataroom)}/folders", headers=admin, json={"name": "Q2", "path": "reports"})
    assert missing_parent.status_code == 404


def test_mutations_record_operation_logs(client: TestClient, login, db_session_fixture, make_dataroom, make_document):
    dataroom = make_dataroom()
    document = make_document(dataroom, "Audit.pdf")
    admin = login()

    client.delete(f"{_base(dataroom)}/documents/{document.id}", headers=admin)
    client.put(f"{_base(dataroom)}/trash/manage/999999/restore", headers=admin)

    logs = (
        db_session_fixture.query(OperationLog)
        .filter(OperationLog.dataroom_id == dataroom.id)
        .order_by(OperationLog.id.asc())
        .all()
    )
    assert [(log.business_type, log.status) for log in logs] == [("delete", "success"), ("restore", "failure")]
    assert logs[0].operator_name == "admin"
    assert logs[0].team_id == dataroom.team_id
    assert logs[1].error_message == "回收站条目不存在"
