import pytest
from fastapi import HTTPException

from paniyal.models import Task, TaskStatus, User
from paniyal.services import directory
from paniyal.services.file_storage import file_storage
from paniyal.utils.security import verify_password


def usernames(db):
    return {user.username for user in db.query(User).all()}


class TestDepartments:
    def test_admin_username(self):
        assert directory.department_admin_username("Roads") == "Admin_Roads"
        assert directory.department_admin_username("Water  Supply Board") == "Admin_Water_Supply_Board"

    def test_list_departments(self, client, org, headers_for):
        response = client.get("/departments/", headers=headers_for(org.master))
        assert response.status_code == 200
        assert response.json() == [
            {"name": "Health", "user_count": 2},
            {"name": "Roads", "user_count": 3},
        ]

    def test_only_master_manages_departments(self, client, org, headers_for):
        assert client.get("/departments/", headers=headers_for(org.roads_admin)).status_code == 403
        response = client.post("/departments/", json={"name": "Parks"}, headers=headers_for(org.anu))
        assert response.status_code == 403

    def test_create_provisions_an_admin(self, client, org, headers_for, db):
        response = client.post("/departments/", json={"name": " Water Supply "}, headers=headers_for(org.master))
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Water Supply"
        assert body["admin"]["username"] == "Admin_Water_Supply"
        assert body["admin"]["role"] == "admin"

        admin = db.query(User).filter(User.username == "Admin_Water_Supply").one()
        assert admin.department == "Water Supply"
        assert verify_password("admin@123", admin.password_hash)

    def test_create_rejects_duplicates(self, client, org, headers_for):
        headers = headers_for(org.master)
        assert client.post("/departments/", json={"name": "roads"}, headers=headers).status_code == 409
        assert client.post("/departments/", json={"name": "  "}, headers=headers).status_code == 400

    def test_create_rejects_a_taken_admin_name(self, client, org, headers_for, user_factory):
        user_factory("Admin_Parks", department="Gardens")
        response = client.post("/departments/", json={"name": "Parks"}, headers=headers_for(org.master))
        assert response.status_code == 409
        assert "Admin_Parks" in response.json()["detail"]

    def test_rename_moves_every_member(self, client, org, headers_for, db):
        response = client.put("/departments/Roads", json={"name": "Highways"}, headers=headers_for(org.master))
        assert response.status_code == 200
        assert response.json()["updated_users"] == 3

        departments = {user.username: user.department for user in db.query(User).all()}
        assert departments["anu"] == departments["ravi"] == departments["Admin_Roads"] == "Highways"
        assert departments["meera"] == "Health"

    def test_rename_edge_cases(self, client, org, headers_for):
        headers = headers_for(org.master)
        unchanged = client.put("/departments/Roads", json={"name": "Roads"}, headers=headers)
        assert unchanged.json()["message"] == "No changes detected."
        assert client.put("/departments/Roads", json={"name": "Health"}, headers=headers).status_code == 409
        assert client.put("/departments/Nowhere", json={"name": "Else"}, headers=headers).status_code == 404
        assert client.put("/departments/Roads", json={"name": ""}, headers=headers).status_code == 400

    def test_delete_cascades_to_users_and_tasks(self, client, org, headers_for, task_factory, db):
        task_factory(org.roads_admin, org.anu)
        task_factory(org.roads_admin, org.ravi, status=TaskStatus.COMPLETED)
        kept = task_factory(org.health_admin, org.meera)
        # Roads admin assigning outside the department
        task_factory(org.roads_admin, org.meera)
        roads_ids = [org.anu.id, org.ravi.id, org.roads_admin.id]
        kept_id = kept.id

        response = client.delete("/departments/Roads", headers=headers_for(org.master))

        assert response.status_code == 200
        assert response.json()["deleted_users"] == 3
        assert response.json()["deleted_tasks"] == 3
        db.expunge_all()
        assert usernames(db) == {"master", "Admin_Health", "meera"}
        assert [task.id for task in db.query(Task).all()] == [kept_id]
        assert not db.query(Task).filter(
            Task.assigned_by.in_(roads_ids) | Task.assigned_to.in_(roads_ids)
        ).count()

    def test_delete_unknown_department(self, client, org, headers_for):
        assert client.delete("/departments/Nowhere", headers=headers_for(org.master)).status_code == 404

    def test_master_department_cannot_be_deleted(self, db, user_factory):
        user_factory("boss", department="Head Office", is_master_admin=True)
        with pytest.raises(HTTPException) as excinfo:
            directory.delete_department(db, "Head Office")
        assert excinfo.value.status_code == 400
        assert "boss" in usernames(db)

    def test_delete_removes_stored_documents(self, client, db, org, task_factory):
        task = task_factory(org.roads_admin, org.anu)
        stored = file_storage.root / f"documents/{task.id}/report.pdf"
        stored.parent.mkdir(parents=True, exist_ok=True)
        stored.write_bytes(b"%PDF-1.4")
        task.document = f"documents/{task.id}/report.pdf"
        db.commit()

        directory.delete_department(db, "Roads")

        assert not stored.exists()


class TestUsers:
    def test_master_lists_users(self, client, org, headers_for):
        response = client.get("/users/", headers=headers_for(org.master))
        assert response.status_code == 200
        assert len(response.json()) == 6
        assert client.get("/users/", headers=headers_for(org.roads_admin)).status_code == 403

    def test_assignable_users(self, client, org, headers_for):
        admin_view = client.get("/users/assignable", headers=headers_for(org.roads_admin))
        assert [user["username"] for user in admin_view.json()] == ["anu", "ravi"]

        master_view = client.get("/users/assignable", headers=headers_for(org.master))
        assert "master" not in [user["username"] for user in master_view.json()]
        assert len(master_view.json()) == 5

        assert client.get("/users/assignable", headers=headers_for(org.anu)).status_code == 403

    def test_admins(self, client, org, headers_for):
        response = client.get("/users/admins", headers=headers_for(org.master))
        assert [user["username"] for user in response.json()] == ["Admin_Health", "Admin_Roads"]

    def test_create_user(self, client, org, headers_for, db):
        payload = {"username": "kavya", "password": "kavya@99", "department": "Health"}
        response = client.post("/users/", json=payload, headers=headers_for(org.master))
        assert response.status_code == 201
        assert response.json()["role"] == "user"

        created = db.query(User).filter(User.username == "kavya").one()
        assert created.password_hash != "kavya@99"
        login = client.post("/auth/login", json={"username": "kavya", "password": "kavya@99"})
        assert login.json()["redirect_to"] == "/user"

    @pytest.mark.parametrize("payload, code", [
        ({"username": "anu", "password": "secret99", "department": "Roads"}, 409),
        ({"username": "new", "password": "abc", "department": "Roads"}, 400),
        ({"username": "new", "password": "secret99", "department": " "}, 400),
        ({"username": " ", "password": "secret99", "department": "Roads"}, 400),
    ])
    def test_create_user_validation(self, client, org, headers_for, payload, code):
        assert client.post("/users/", json=payload, headers=headers_for(org.master)).status_code == code

    def test_update_keeps_password_when_blank(self, client, org, headers_for, db):
        response = client.put(
            f"/users/{org.anu.id}",
            json={"username": "anu.k", "department": "Health", "password": ""},
            headers=headers_for(org.master),
        )
        assert response.status_code == 200
        assert response.json()["username"] == "anu.k"
        assert response.json()["department"] == "Health"

        db.expire_all()
        assert verify_password("secret123", db.get(User, org.anu.id).password_hash)

    def test_renaming_yourself_returns_a_new_token(self, client, org, headers_for):
        old_headers = headers_for(org.master)

        response = client.put(f"/users/{org.master.id}", json={"username": "chief"}, headers=old_headers)

        assert response.status_code == 200
        token = response.json()["access_token"]
        assert token
        assert client.get("/auth/me", headers=old_headers).status_code == 401
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["username"] == "chief"

    def test_renaming_someone_else_keeps_the_callers_token(self, client, org, headers_for):
        headers = headers_for(org.master)
        response = client.put(f"/users/{org.anu.id}", json={"username": "anu.k"}, headers=headers)
        assert response.json()["access_token"] is None
        assert client.get("/auth/me", headers=headers).status_code == 200

    def test_update_password_and_clashes(self, client, org, headers_for, db):
        headers = headers_for(org.master)
        assert client.put(f"/users/{org.anu.id}", json={"password": "changed1"}, headers=headers).status_code == 200
        db.expire_all()
        assert verify_password("changed1", db.get(User, org.anu.id).password_hash)

        assert client.put(f"/users/{org.anu.id}", json={"username": "ravi"}, headers=headers).status_code == 409
        assert client.put(f"/users/{org.anu.id}", json={"password": "abc"}, headers=headers).status_code == 400
        assert client.put("/users/999", json={"username": "x"}, headers=headers).status_code == 404

    def test_delete_user_removes_their_tasks(self, client, org, headers_for, task_factory, db):
        task_factory(org.roads_admin, org.anu)
        task_factory(org.roads_admin, org.anu, status=TaskStatus.COMPLETED)
        kept = task_factory(org.roads_admin, org.ravi)

        response = client.delete(f"/users/{org.anu.id}", headers=headers_for(org.master))

        assert response.status_code == 200
        assert response.json()["deleted_tasks"] == 2
        db.expire_all()
        assert "anu" not in usernames(db)
        assert [task.id for task in db.query(Task).all()] == [kept.id]

    def test_deleting_an_admin_removes_tasks_they_assigned(self, client, org, headers_for, task_factory, db):
        task_factory(org.roads_admin, org.anu)
        task_factory(org.roads_admin, org.ravi)

        response = client.delete(f"/users/{org.roads_admin.id}", headers=headers_for(org.master))

        assert response.json()["deleted_tasks"] == 2
        assert db.query(Task).count() == 0
        assert {"anu", "ravi"} <= usernames(db)

    def test_master_cannot_be_deleted(self, client, org, headers_for, db, user_factory):
        other_master = user_factory("root", is_master_admin=True)
        headers = headers_for(org.master)
        assert client.delete(f"/users/{other_master.id}", headers=headers).status_code == 400
        assert client.delete(f"/users/{org.master.id}", headers=headers).status_code == 400
        assert client.delete("/users/999", headers=headers).status_code == 404
