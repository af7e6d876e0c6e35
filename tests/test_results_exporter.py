import csv
import json
import threading

from live_quiz.core.results_exporter import ResultsWriter, save_leaderboard_csv, save_results_json


def _finished_controller(make_controller, clock):
    controller = make_controller()
    controller.join("A", "Alice")
    controller.join("B", "Bob")
    controller.start()
    clock.advance(2)
    controller.submit_answer("A", "q1", "Paris", elapsed_seconds=2)
    clock.advance(3)
    controller.submit_answer("A", "q2", "42", elapsed_seconds=3)
    controller.submit_answer("B", "q1", "Rome", elapsed_seconds=1)
    controller.end()
    return controller


def test_json_export_contains_full_snapshot(tmp_path, make_controller, clock):
    snapshot = _finished_controller(make_controller, clock).snapshot()
    path = save_results_json(tmp_path / "out" / "results.json", snapshot)

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["status"] == "completed"
    assert document["leaderboard"][0]["display_name"] == "Alice"
    kinds = {badge["kind"] for badge in document["metrics"]["badges"]}
    assert "perfectionist" in kinds


def test_csv_export_has_one_row_per_participant(tmp_path, make_controller, clock):
    snapshot = _finished_controller(make_controller, clock).snapshot()
    path = save_leaderboard_csv(tmp_path / "leaderboard.csv", snapshot)

    with path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["participant_id"] for row in rows] == ["A", "B"]
    assert rows[0]["percentage"] == "100"
    assert rows[0]["average_time"] == "2.50"


def test_results_writer_writes_once_on_completion(tmp_path, make_controller):
    writer = ResultsWriter(tmp_path)
    controller = make_controller()
    controller.subscribe(writer)
    controller.join("A")
    controller.start()
    assert list(tmp_path.iterdir()) == []

    controller.end()
    controller.end()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["session-1.csv", "session-1.json"]


def test_results_writer_writes_once_across_threads(tmp_path, make_controller, monkeypatch):
    controller = make_controller()
    controller.start()
    snapshot = controller.end()

    writes = []
    monkeypatch.setattr(
        "live_quiz.core.results_exporter.save_results_json",
        lambda path, snap: writes.append(path) or path,
    )
    monkeypatch.setattr("live_quiz.core.results_exporter.save_leaderboard_csv", lambda path, snap: path)

    writer = ResultsWriter(tmp_path)
    barrier = threading.Barrier(8)

    def deliver():
        barrier.wait()
        writer(snapshot)

    threads = [threading.Thread(target=deliver) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(writes) == 1
