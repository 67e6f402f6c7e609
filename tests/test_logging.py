import logging

from propdesk.core.logging import GuestDataFilter, get_logger, mask_value


def _record(**extra):
    record = logging.LogRecord("propdesk.test", logging.INFO, __file__, 1, "Booking created", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_guest_contact_details_are_masked():
    record = _record(guest_email="jane.doe@propmail.co.za", guest_phone="+27 82 555 0100", booking_id="b-1")

    GuestDataFilter().filter(record)

    assert record.guest_email == "j***@propmail.co.za"
    assert record.guest_phone == "***100"
    assert record.booking_id == "b-1"


def test_secrets_are_redacted_in_nested_values():
    record = _record(payload={"api_token": "abc", "amount": "100.00"})

    GuestDataFilter().filter(record)

    assert record.payload == {"api_token": "[REDACTED]", "amount": "100.00"}


def test_caller_mapping_is_not_modified():
    details = {"guest_email": "jane.doe@propmail.co.za", "nested": {"password": "hunter2"}}
    record = _record(details=details)

    GuestDataFilter().filter(record)

    assert record.details == {"guest_email": "j***@propmail.co.za", "nested": {"password": "[REDACTED]"}}
    assert details == {"guest_email": "jane.doe@propmail.co.za", "nested": {"password": "hunter2"}}


def test_mask_value_leaves_missing_contacts_alone():
    assert mask_value("guest_email", None) is None
    assert mask_value("guest_phone", "12") == "***"


def test_adapter_merges_bound_and_call_context(caplog):
    logger = get_logger("propdesk.test").add_context(property_id="p-1", source="airbnb")

    with caplog.at_level(logging.INFO, logger="propdesk.test"):
        logger.info("Calendar sync finished", extra={"source": "booking_com", "imported": 2})

    record = caplog.records[-1]
    assert record.property_id == "p-1"
    assert record.source == "booking_com"
    assert record.imported == 2
