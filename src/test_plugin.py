import io

import pytest
from certcheck import constants
from certcheck.exceptions import InvalidInputError, MissingValueError
from certcheck.nagios import Plugin, PerformanceData, extract_and_decode_payload

EOL = constants.CHECK_OUTPUT_EOL


@pytest.fixture
def plugin():
    plugin = Plugin(track_runtime=False)
    plugin.skip_os_exit()
    plugin.set_output_target(io.StringIO())
    return plugin


def output(plugin: Plugin) -> str:
    sink = io.StringIO()
    plugin.set_output_target(sink)
    plugin.return_check_results()
    return sink.getvalue()


def test_service_output_only(plugin):
    plugin.service_output = "OK: all good \t\n"
    assert output(plugin) == "OK: all good"


def test_default_exit_code_ok():
    assert Plugin().exit_status_code == constants.STATE_OK_EXIT_CODE


def test_full_layout(plugin):
    plugin.service_output = "WARNING: something"
    plugin.add_error(ValueError("first"), ValueError("second"))
    plugin.warning_threshold = "30"
    plugin.critical_threshold = "15"
    plugin.long_service_output = "details"
    plugin.add_perfdata(PerformanceData(label="b", value=2), PerformanceData(label="A", value=1))
    assert output(plugin) == (
        "WARNING: something"
        f"{EOL}{EOL}**ERRORS**{EOL}{EOL}* first{EOL}* second{EOL}"
        f"{EOL}**THRESHOLDS**{EOL}{EOL}* CRITICAL: 15{EOL}* WARNING: 30{EOL}"
        f"{EOL}**DETAILED INFO**{EOL}{EOL}details{EOL}"
        f" | 'A'=1;;;; 'b'=2;;;;{EOL}"
    )


def test_detailed_info_without_header(plugin):
    plugin.service_output = "OK: fine"
    plugin.long_service_output = "details"
    assert output(plugin) == f"OK: fine{EOL}{EOL}details{EOL}"


def test_hidden_sections(plugin):
    plugin.service_output = "OK"
    plugin.add_error(ValueError("hidden"))
    plugin.warning_threshold = "30"
    plugin.hide_errors_section()
    plugin.hide_thresholds_section()
    assert plugin.is_errors_hidden
    assert plugin.is_thresholds_hidden
    assert output(plugin) == "OK"


def test_custom_labels(plugin):
    plugin.service_output = "CRITICAL: bad"
    plugin.add_error(ValueError("oops"))
    plugin.set_errors_label("VALIDATION ERRORS")
    assert "**VALIDATION ERRORS**" in output(plugin)


def test_perfdata_requires_service_output(plugin):
    plugin.add_perfdata(PerformanceData(label="a", value=1))
    assert output(plugin) == ""


def test_perfdata_replaced_by_label(plugin):
    plugin.add_perfdata(PerformanceData(label="Size", value=1))
    plugin.add_perfdata(PerformanceData(label="size", value=2))
    assert [str(pd) for pd in plugin.perfdata] == ["'size'=2;;;;"]


def test_perfdata_validated(plugin):
    with pytest.raises(MissingValueError):
        plugin.add_perfdata(PerformanceData(label="", value=1))
    plugin.add_perfdata(PerformanceData(label="", value=1), skip_validate=True)


def test_time_metric_added():
    plugin = Plugin()
    plugin.skip_os_exit()
    plugin.set_output_target(io.StringIO())
    plugin.service_output = "OK"
    text = output(plugin)
    assert text.startswith("OK |")
    assert "'time'=" in text
    assert text.endswith(f"ms;;;;{EOL}")


def test_time_metric_not_replaced():
    plugin = Plugin()
    plugin.add_perfdata(PerformanceData(label="time", value=5, uom="ms"))
    plugin.render()
    assert str(plugin.perfdata[0]) == "'time'=5ms;;;;"


def test_payload_section(plugin):
    plugin.service_output = "OK"
    assert plugin.add_payload_string('{"a": ') == 6
    plugin.add_payload_string("1}")
    assert plugin.unencoded_payload() == b'{"a": 1}'
    text = output(plugin)
    assert "**ENCODED PAYLOAD**" in text
    assert extract_and_decode_payload(text) == b'{"a": 1}'


def test_payload_custom_delimiters(plugin):
    plugin.service_output = "OK"
    plugin.set_payload_string("data")
    plugin.set_encoded_payload_delimiter_left("{{")
    plugin.set_encoded_payload_delimiter_right("}}")
    text = output(plugin)
    assert extract_and_decode_payload(text, left_delimiter="{{", right_delimiter="}}") == b"data"


def test_binary_payload(plugin):
    plugin.service_output = "OK"
    assert plugin.set_payload_bytes(b"\xff\xfe\x01") == 3
    assert plugin.unencoded_payload() == b"\xff\xfe\x01"
    assert extract_and_decode_payload(output(plugin)) == b"\xff\xfe\x01"


def test_branding(plugin):
    plugin.service_output = "OK"
    plugin.branding_callback = lambda: "brand"
    assert output(plugin) == f"OK{EOL}brand{EOL}"


def test_add_unique_error(plugin):
    plugin.add_unique_error(ValueError("Same"), ValueError("same"))
    plugin.add_unique_error(ValueError("SAME"), ValueError("other"))
    assert [str(err) for err in plugin.errors] == ["Same", "other"]


def test_evaluate_threshold(plugin):
    assert plugin.evaluate_threshold(PerformanceData(label="a", value=20, warn="10", crit="30")) is None
    assert plugin.exit_status_code == constants.STATE_WARNING_EXIT_CODE
    plugin.evaluate_threshold(PerformanceData(label="a", value=40, warn="10", crit="30"))
    assert plugin.exit_status_code == constants.STATE_CRITICAL_EXIT_CODE


def test_evaluate_threshold_invalid_range(plugin):
    err = plugin.evaluate_threshold(PerformanceData(label="a", value=1, crit="20:10"))
    assert isinstance(err, InvalidInputError)
    assert plugin.exit_status_code == constants.STATE_UNKNOWN_EXIT_CODE


def test_exit_code_passed_to_sys_exit():
    plugin = Plugin(track_runtime=False)
    plugin.set_output_target(io.StringIO())
    plugin.exit_status_code = constants.STATE_WARNING_EXIT_CODE
    with pytest.raises(SystemExit) as exc:
        plugin.return_check_results()
    assert exc.value.code == constants.STATE_WARNING_EXIT_CODE


def test_panic_recovered(plugin):
    sink = io.StringIO()
    plugin.set_output_target(sink)
    with plugin:
        plugin.service_output = "OK: about to fail"
        raise RuntimeError("boom")
    text = sink.getvalue()
    assert plugin.exit_status_code == constants.STATE_CRITICAL_EXIT_CODE
    assert text.startswith(constants.PLUGIN_CRASH_SERVICE_OUTPUT)
    assert "* panic-detected: boom" in text
    assert "RuntimeError('boom')" in text
    assert "```" in text
    assert "\n" not in text.replace(EOL, "")


def test_system_exit_propagates(plugin):
    sink = io.StringIO()
    plugin.set_output_target(sink)
    with pytest.raises(SystemExit):
        with plugin:
            raise SystemExit(3)
    assert sink.getvalue() == ""
