import pytest
from fastapi import HTTPException

from paniyal.services.decoy import DecoyService, LoginAttemptTracker, decoy_service


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return LoginAttemptTracker(max_attempts=3, window=300, clock=clock)


@pytest.fixture
def service(tracker, clock):
    return DecoyService(tracker, duration=20, deactivation_code="harrypotter",
                        redirect_after_destruct="/admin", retention=60, clock=clock)


class TestLoginAttemptTracker:
    def test_counts_up_to_the_lock(self, tracker):
        assert tracker.record_failure("10.0.0.1") == 1
        assert tracker.record_failure("10.0.0.1") == 2
        assert not tracker.is_locked("10.0.0.1")
        assert tracker.record_failure("10.0.0.1") == 3
        assert tracker.is_locked("10.0.0.1")

    def test_clients_are_tracked_separately(self, tracker):
        for _ in range(3):
            tracker.record_failure("10.0.0.1")
        assert tracker.failures("10.0.0.2") == 0
        assert not tracker.is_locked("10.0.0.2")

    def test_old_failures_fall_out_of_the_window(self, tracker, clock):
        tracker.record_failure("10.0.0.1")
        tracker.record_failure("10.0.0.1")
        clock.advance(301)
        assert tracker.failures("10.0.0.1") == 0
        assert tracker.record_failure("10.0.0.1") == 1

    def test_reset(self, tracker):
        for _ in range(3):
            tracker.record_failure("10.0.0.1")
        tracker.reset("10.0.0.1")
        assert not tracker.is_locked("10.0.0.1")

    def test_reading_an_unknown_client_does_not_track_it(self, tracker):
        assert tracker.failures("10.0.0.9") == 0
        assert not tracker.is_locked("10.0.0.9")
        assert tracker.tracked_clients() == 0

    def test_expired_clients_are_dropped(self, tracker, clock):
        tracker.record_failure("10.0.0.1")
        tracker.record_failure("10.0.0.2")
        clock.advance(301)

        assert tracker.failures("10.0.0.1") == 0
        assert tracker.tracked_clients() == 1
        assert tracker.failures("10.0.0.2") == 0
        assert tracker.tracked_clients() == 0


class TestDecoyService:
    def test_countdown_runs_on_the_clock(self, service, clock):
        sequence = service.start("10.0.0.1")
        assert service.state(sequence)["time_left"] == 20

        clock.advance(7.5)
        state = service.state(sequence)
        assert state["time_left"] == 13
        assert not state["destructed"]
        assert state["redirect_to"] is None

    def test_expired_countdown_redirects(self, service, clock):
        sequence = service.start("10.0.0.1")
        clock.advance(25)
        state = service.state(sequence)
        assert state["time_left"] == 0
        assert state["destructed"]
        assert state["redirect_to"] == "/admin"

    def test_wrong_code_is_refused(self, service, clock):
        sequence = service.start("10.0.0.1")
        with pytest.raises(HTTPException) as excinfo:
            service.abort(sequence.id, "expelliarmus")
        assert excinfo.value.status_code == 403
        assert excinfo.value.detail == "ACCESS DENIED: Incorrect Deactivation Code!"

        clock.advance(5)
        assert service.state(sequence)["time_left"] == 15

    def test_abort_freezes_the_timer_and_unlocks_the_client(self, service, tracker, clock):
        for _ in range(3):
            tracker.record_failure("10.0.0.1")
        sequence = service.start("10.0.0.1")
        clock.advance(4)

        service.abort(sequence.id, " harrypotter ")
        clock.advance(60)

        state = service.state(sequence)
        assert state["stopped"]
        assert state["time_left"] == 16
        assert not state["destructed"]
        assert not tracker.is_locked("10.0.0.1")

    def test_abort_after_expiry_conflicts(self, service, clock):
        sequence = service.start("10.0.0.1")
        clock.advance(21)
        with pytest.raises(HTTPException) as excinfo:
            service.abort(sequence.id, "harrypotter")
        assert excinfo.value.status_code == 409

    def test_unknown_sequence(self, service):
        with pytest.raises(HTTPException) as excinfo:
            service.get("missing")
        assert excinfo.value.status_code == 404

    def test_one_running_sequence_per_client(self, service, clock):
        first = service.start("10.0.0.1")
        clock.advance(5)

        assert service.start("10.0.0.1").id == first.id
        assert service.start("10.0.0.2").id != first.id
        assert service.active_sequences() == 2

    def test_finished_sequences_are_replaced(self, service, clock):
        stopped = service.start("10.0.0.1")
        service.abort(stopped.id, "harrypotter")
        assert service.start("10.0.0.1").id != stopped.id

        clock.advance(21)
        assert service.state(service.start("10.0.0.1"))["time_left"] == 20

    def test_finished_sequences_are_forgotten_after_retention(self, service, clock):
        expired = service.start("10.0.0.1")
        stopped = service.start("10.0.0.2")
        service.abort(stopped.id, "harrypotter")

        clock.advance(21 + 30)
        assert service.get(expired.id) is expired
        assert service.get(stopped.id) is stopped

        clock.advance(31)
        for sequence_id in (expired.id, stopped.id):
            with pytest.raises(HTTPException) as excinfo:
                service.get(sequence_id)
            assert excinfo.value.status_code == 404
        assert service.active_sequences() == 0


def test_decoy_endpoints(client):
    started = client.post("/decoy/")
    assert started.status_code == 201
    sequence_id = started.json()["id"]
    assert started.json()["duration"] == 20
    assert started.json()["stopped"] is False

    assert client.get(f"/decoy/{sequence_id}").status_code == 200

    denied = client.post(f"/decoy/{sequence_id}/abort", json={"code": "wrong"})
    assert denied.status_code == 403

    stopped = client.post(f"/decoy/{sequence_id}/abort", json={"code": "harrypotter"})
    assert stopped.status_code == 200
    assert stopped.json()["stopped"] is True
    assert stopped.json()["destructed"] is False

    assert client.get("/decoy/unknown").status_code == 404


def test_abort_lets_a_locked_client_log_in_again(client, org):
    for _ in range(3):
        response = client.post("/auth/login", json={"username": "anu", "password": "wrong"})
    sequence_id = response.json()["decoy_id"]

    client.post(f"/decoy/{sequence_id}/abort", json={"code": "harrypotter"})

    response = client.post("/auth/login", json={"username": "anu", "password": "secret123"})
    assert response.json()["redirect_to"] == "/user"


def test_repeated_logins_from_a_locked_client_share_one_sequence(client, org):
    for _ in range(3):
        response = client.post("/auth/login", json={"username": "anu", "password": "wrong"})
    sequence_id = response.json()["decoy_id"]

    for _ in range(50):
        response = client.post("/auth/login", json={"username": "anu", "password": "wrong"})
        assert response.json()["decoy_id"] == sequence_id
    assert client.post("/decoy/").json()["id"] == sequence_id
    assert decoy_service.active_sequences() == 1
