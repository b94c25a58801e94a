from sqlalchemy.exc import OperationalError

import main
from paniyal.services.scheduler import MaintenanceScheduler, ping_database


def test_root_and_health(client):
    assert client.get("/").json() == {"message": "Paniyal Task API"}
    assert client.get("/health").json() == {"status": "ok"}


def test_database_ping(client):
    response = client.get("/health/db")
    assert response.status_code == 200
    assert response.json() == {"message": "Database successfully pinged!", "status": 200}


def test_database_ping_failure(client, monkeypatch):
    def broken(db):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(main, "ping_database", broken)
    response = client.get("/health/db")
    assert response.status_code == 500
    assert response.json()["detail"].startswith("Failed to ping database")


def test_ping_database(db):
    assert ping_database(db) is True


def test_scheduler_status_when_stopped(client):
    body = client.get("/scheduler/status").json()
    assert body["status"] == "stopped"


def test_scheduler_registers_maintenance_jobs(monkeypatch):
    scheduler = MaintenanceScheduler()
    monkeypatch.setattr(scheduler.scheduler, "start", lambda: None)

    scheduler.start()

    assert scheduler.is_running
    assert {job.id for job in scheduler.scheduler.get_jobs()} == {
        "keep_database_awake", "cleanup_orphaned_documents"
    }
    scheduler.is_running = False


def test_cleanup_orphaned_files(client, db, org, task_factory):
    from paniyal.services.file_storage import file_storage

    task = task_factory(org.roads_admin, org.anu)
    kept = file_storage.root / f"documents/{task.id}/kept.pdf"
    orphan = file_storage.root / "documents/999/orphan.pdf"
    for path in (kept, orphan):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"%PDF-1.4")
    task.document = f"documents/{task.id}/kept.pdf"
    db.commit()

    assert file_storage.cleanup_orphaned_files(db) == 1
    assert kept.exists()
    assert not orphan.exists()
