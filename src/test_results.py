from certcheck import constants
from certcheck.exceptions import MissingValueError
from certcheck.models import ServiceState, ValidationOptions
from certcheck.results import ValidationResults
from certcheck.validations.expiration import validate_expiration
from certcheck.validations.hostname import validate_hostname
from certcheck.validations.root import validate_root
from certcheck.validations.sans import validate_sans_list

EOL = constants.CHECK_OUTPUT_EOL


def test_empty_results():
    results = ValidationResults()
    assert results.state == ServiceState.UNKNOWN
    assert results.lead() is None
    assert results.report() == ""
    errors = results.errs()
    assert len(errors) == 1
    assert isinstance(errors[0], MissingValueError)


def test_all_ok_lead_is_expiration(make_chain, now):
    chain = make_chain()
    results = ValidationResults()
    results.add(validate_hostname(chain, server="www.example.com"))
    results.add(validate_expiration(chain, 15, 30, now=now))
    assert results.state == ServiceState.OK
    assert results.lead().check_name == constants.CHECK_NAME_EXPIRATION
    assert results.status().startswith("OK: expiration validation successful;")


def test_failed_and_ignored(make_chain, now):
    chain = make_chain(include_root=True)
    results = ValidationResults()
    results.add(validate_hostname(chain, server="www.example.com"))
    results.add(validate_sans_list(chain, [constants.SKIP_SANS_CHECKS_KEYWORD]))
    results.add(validate_root(chain))
    assert results.state == ServiceState.WARNING
    assert results.check_names() == [
        constants.CHECK_NAME_HOSTNAME,
        constants.CHECK_NAME_SANS_LIST,
        constants.CHECK_NAME_ROOT,
    ]
    assert (results.num_succeeded, results.num_ignored, results.num_failed) == (1, 1, 1)
    assert results.overview() == (
        "[checks: 1 IGNORED (SANs List), 1 FAILED (Root), 1 SUCCESSFUL (Hostname)]"
    )
    assert results.one_line_summary() == (
        "WARNING: root validation failed: 1 root certs present [ROOT CERTS: 1, TOTAL: 3] "
        + results.overview()
    )


def test_report_markers(make_chain):
    chain = make_chain(include_root=True)
    results = ValidationResults()
    results.add(validate_hostname(chain, server="www.example.com"))
    results.add(validate_sans_list(chain, [constants.SKIP_SANS_CHECKS_KEYWORD]))
    results.add(validate_root(chain))
    report = results.report()
    assert report.startswith(f"{EOL}[OK] hostname validation")
    assert f"{EOL}{EOL}[--] sans list validation ignored" in report
    assert f"{EOL}{EOL}[!!] root validation failed" in report
    assert report.endswith(EOL)


def test_unknown_outranks_critical(make_chain, now):
    chain = make_chain(sans=("foo.example.com",))
    results = ValidationResults()
    results.add(validate_hostname(chain, server="bar.example.com"))
    results.add(validate_expiration(chain, 0, 30, now=now))
    assert results.state == ServiceState.UNKNOWN
    assert results.lead().check_name == constants.CHECK_NAME_EXPIRATION


def test_ignored_errors_listed_on_request(make_chain):
    chain = make_chain()
    options = ValidationOptions(ignore_validation_result_root=True)
    results = ValidationResults()
    results.add(validate_sans_list(chain, ["missing.example.com"], ValidationOptions(ignore_validation_result_sans=True)))
    results.add(validate_root(chain, options))
    assert results.errs() == []
    assert len(results.errs(include_ignored=True)) == 1
