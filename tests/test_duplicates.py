"""Duplicate-phone detection for VIP intake"""

from backoffice.domain.members.duplicates import EXISTING, REPEATED, check_phones, split_duplicates


class TestCheckPhones:
    def test_roster_phone_with_whitespace_is_duplicate(self):
        checks = check_phones(["012 345 678"], ["012345678"])
        assert checks[0].duplicate is True
        assert checks[0].reason == EXISTING
        assert checks[0].normalized_phone == "012345678"

    def test_repeat_within_batch(self):
        checks = check_phones(["0111", "0222", "01 11"], [])
        assert [c.duplicate for c in checks] == [False, False, True]
        assert checks[2].reason == REPEATED

    def test_leading_zero_is_significant(self):
        checks = check_phones(["12345678"], ["012345678"])
        assert checks[0].duplicate is False


class TestSplitDuplicates:
    def test_duplicates_excluded_from_submission(self):
        items = [{"name": "Jane", "phone": "012345678"}, {"name": "Ali", "phone": "0199"}]

        fresh, duplicates = split_duplicates(items, lambda item: item["phone"], ["0123 45678"])

        assert fresh == [{"name": "Ali", "phone": "0199"}]
        assert [(item["name"], check.index) for item, check in duplicates] == [("Jane", 0)]
