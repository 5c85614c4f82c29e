import datetime
import json
import logging
import subprocess
import sys

import dateutil.parser

import spdxgraph.log


def run_python(*lines):
    return subprocess.run([sys.executable, "-c", "\n".join(lines)], check=False)


def test_log():
    p = run_python(
        "import spdxgraph.log",
        'spdxgraph.log.activate(filename="log.txt")',
        'l = spdxgraph.log.getLogger("test_log")',
        'l.debug("this is a log record")',
    )
    assert p.returncode == 0

    with open("log.txt") as f:
        line = f.readline()
        # Get datetime in the log
        log_datetime, _, _ = line.partition(": ")

        # Parse it and verify that it is in GMT
        assert (
            datetime.datetime.utcnow() - dateutil.parser.parse(log_datetime)
        ).seconds < 10
        assert "spdxgraph.test_log" in line


def test_json_log():
    """Check the logger method wrappers and the JSON logs."""
    p = run_python(
        "import spdxgraph.log",
        'spdxgraph.log.activate(filename="log.json", json_format=True)',
        'l = spdxgraph.log.getLogger("test_log")',
        'l.debug("this is a log record")',
        'l.info("record about a package", spdx_id="SPDXRef-P")',
        'l.warning("record about a package", spdx_id="SPDXRef-P")',
        'l.debug("record about a package", spdx_id="SPDXRef-P")',
        'l.error("record about a package", spdx_id="SPDXRef-P")',
    )
    assert p.returncode == 0

    with open("log.json") as f:
        lines = f.readlines()

    record = json.loads(lines[0])
    # Default JSON fields, empty values being removed
    assert set(record) == {"asctime", "levelname", "name", "message", "module"}

    for line in lines[1:]:
        record = json.loads(line)
        assert record["spdx_id"] == "SPDXRef-P"
        assert len(record.keys()) == 6


def test_json_formatter_context():
    formatter = spdxgraph.log.JSONFormatter(context={"codec": "json"})
    record = logging.LogRecord(
        "spdxgraph.codec", logging.INFO, __file__, 1, "decoded", None, None
    )
    record.spdx_id = "SPDXRef-DOCUMENT"
    result = json.loads(formatter.format(record))
    assert result["codec"] == "json"
    assert result["spdx_id"] == "SPDXRef-DOCUMENT"
    assert result["message"] == "decoded"


def test_progress_bar():
    assert list(spdxgraph.log.progress_bar([1, 2, 3])) == [1, 2, 3]
