import logging
from unittest.mock import patch

import pytest

from callsampler import __version__
from callsampler import set_log_level
from callsampler.commands import main
from tests.utils import sample_event
from tests.utils import write_trace

PROCESS = {
    "pid": 10,
    "name": "app",
    "threads": [
        {"tid": 1, "description": "Main Thread"},
        {"tid": 2, "description": "Worker"},
    ],
}

EVENTS = [
    sample_event(10, 1, "A", "main"),
    sample_event(10, 1, "B", "A", "main"),
    sample_event(10, 1, "A", "main"),
    sample_event(10, 2, "Poll", "Loop"),
]


@pytest.fixture
def trace(tmp_path):
    return write_trace(tmp_path / "trace.json", [PROCESS], EVENTS)


@pytest.fixture
def restore_log_level():
    yield
    set_log_level(logging.WARNING)


def output_lines(captured):
    return captured.out.splitlines()


def test_no_args_passed(capsys):
    with pytest.raises(SystemExit):
        main([])

    captured = capsys.readouterr()
    assert "usage:" in captured.err
    assert "error: the following arguments are required:" in captured.err


def test_version(capsys):
    with pytest.raises(SystemExit):
        main(["--version"])

    assert capsys.readouterr().out.strip() == __version__


class TestAnalyzeSubCommand:
    def test_prints_a_tree_per_thread(self, trace, capsys):
        # WHEN
        ret = main(["analyze", str(trace)])

        # THEN
        assert ret == 0
        lines = output_lines(capsys.readouterr())
        assert lines[:-1] == [
            "├─ Thread (1) 'Main Thread' [3]",
            "| ├─ app!main [3]",
            "| | ├─ app!A [3]",
            "| | | ├─ app!B [1]",
            "├─ Thread (2) 'Worker' [1]",
            "| ├─ app!Loop [1]",
            "| | ├─ app!Poll [1]",
        ]
        assert lines[-1].endswith(" ms] Completed call stack analysis")

    def test_max_depth(self, trace, capsys):
        assert main(["analyze", str(trace), "1"]) == 0

        lines = output_lines(capsys.readouterr())
        assert lines[:-1] == [
            "├─ Thread (1) 'Main Thread' [3]",
            "| ├─ app!main [3]",
            "├─ Thread (2) 'Worker' [1]",
            "| ├─ app!Loop [1]",
        ]

    def test_legacy_entry_frames(self, trace, capsys):
        assert main(["analyze", str(trace), "2", "--legacy-entry-frames"]) == 0

        lines = output_lines(capsys.readouterr())
        assert lines[:-1] == [
            "├─ Thread (1) 'Main Thread' [3]",
            "| ├─ app!main [3]",
            "| | ├─ app!main [3]",
            "├─ Thread (2) 'Worker' [1]",
            "| ├─ app!Loop [1]",
            "| | ├─ app!Loop [1]",
        ]

    def test_thread_without_samples(self, tmp_path, capsys):
        trace = write_trace(tmp_path / "trace.json", [PROCESS], EVENTS[:1])

        assert main(["analyze", str(trace)]) == 0

        lines = output_lines(capsys.readouterr())
        assert "├─ Thread (2) 'Worker' [0]" in lines

    def test_invalid_max_depth(self, trace, capsys):
        with pytest.raises(SystemExit):
            main(["analyze", str(trace), "deep"])

        assert "invalid int value: 'deep'" in capsys.readouterr().err

    def test_missing_trace_file(self, tmp_path, capsys):
        ret = main(["analyze", str(tmp_path / "missing.json")])

        assert ret == 1
        captured = capsys.readouterr()
        assert "No such file" in captured.err
        assert captured.out == ""

    def test_unreadable_trace_prints_no_tree(self, tmp_path, capsys):
        trace = tmp_path / "trace.json"
        trace.write_text("{not json")

        ret = main(["analyze", str(trace)])

        assert ret == 1
        captured = capsys.readouterr()
        assert "is not valid JSON" in captured.err
        assert captured.out == ""

    @pytest.mark.parametrize(
        "processes",
        [[], [{"pid": 10, "name": "app", "threads": []}]],
        ids=["no processes", "no threads"],
    )
    def test_no_data(self, tmp_path, capsys, processes):
        trace = write_trace(tmp_path / "trace.json", processes, [])

        assert main(["analyze", str(trace)]) == 0

        captured = capsys.readouterr()
        assert "No data" in captured.out
        assert "Completed call stack analysis" not in captured.out

    def test_several_processes_require_a_pid(self, tmp_path, capsys):
        other = {"pid": 20, "name": "other", "threads": [{"tid": 7}]}
        trace = write_trace(tmp_path / "trace.json", [PROCESS, other], EVENTS)

        ret = main(["analyze", str(trace)])

        assert ret == 1
        assert "several processes (10, 20)" in capsys.readouterr().err

    def test_select_process_by_pid(self, tmp_path, capsys):
        other = {"pid": 20, "name": "other", "threads": [{"tid": 7}]}
        trace = write_trace(
            tmp_path / "trace.json",
            [PROCESS, other],
            EVENTS + [sample_event(20, 7, "Idle")],
        )

        assert main(["analyze", str(trace), "--pid", "20"]) == 0

        lines = output_lines(capsys.readouterr())
        assert lines[:-1] == [
            "├─ Thread (7) '' [1]",
            "| ├─ app!Idle [1]",
        ]

    def test_unknown_pid(self, trace, capsys):
        ret = main(["analyze", str(trace), "--pid", "99"])

        assert ret == 1
        assert "No process with pid 99" in capsys.readouterr().err

    def test_conversion_log_goes_to_stderr(self, trace, capsys):
        assert main(["analyze", str(trace), "--conversion-log"]) == 0

        captured = capsys.readouterr()
        assert "Converted 4 events" in captured.err
        assert "Converted" not in captured.out

    def test_threads_are_rendered_with_their_own_tree(self, trace):
        with patch(
            "callsampler.commands.analyze.CallTreeReporter.render", autospec=True
        ) as render_mock:
            assert main(["analyze", str(trace), "3"]) == 0

        assert [call.args[1:] for call in render_mock.call_args_list] == [
            ("Thread (1) 'Main Thread'", 3),
            ("Thread (2) 'Worker'", 3),
        ]
        first, second = (call.args[0] for call in render_mock.call_args_list)
        assert first.data is not second.data
        assert first.data.count == 3
        assert second.data.count == 1

    def test_no_data_with_brackets_in_the_trace_path(self, tmp_path, capsys):
        # GIVEN
        directory = tmp_path / "a[" / "b]"
        directory.mkdir(parents=True)
        trace = write_trace(directory / "trace.json", [], [])

        # WHEN
        ret = main(["analyze", str(trace)])

        # THEN
        assert ret == 0
        captured = capsys.readouterr()
        assert "No data" in captured.out
        assert captured.err == ""

    def test_debug_messages_go_to_stderr(self, trace, capsys, restore_log_level):
        assert main(["-vv", "analyze", str(trace)]) == 0

        captured = capsys.readouterr()
        assert "Thread 1: 3 samples" in captured.err
        assert "Thread 2: 1 samples" in captured.err
        assert "samples" not in captured.out

    def test_default_verbosity_hides_info_messages(self, trace, capsys):
        assert main(["analyze", str(trace)]) == 0

        assert "Loading sample trace" not in capsys.readouterr().err
