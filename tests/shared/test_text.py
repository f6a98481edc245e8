from school_portal.shared.utils.text import clean_text, format_branch_name, matches_search, unique_values


class TestFormatBranchName:
    def test_spaced_dash(self):
        assert format_branch_name("Little Champions - Makati") == {
            "company": "Little Champions",
            "location": "Makati",
        }

    def test_bare_dash(self):
        assert format_branch_name("ABC-North") == {"company": "ABC", "location": "North"}

    def test_spaced_dash_wins_over_bare_dash(self):
        assert format_branch_name("Jean-Paul School - Cebu") == {
            "company": "Jean-Paul School",
            "location": "Cebu",
        }

    def test_no_separator(self):
        assert format_branch_name("Main") == {"company": "Main", "location": ""}

    def test_empty(self):
        assert format_branch_name("") is None
        assert format_branch_name(None) is None


def test_matches_search_is_case_insensitive():
    assert matches_search("inv-12", "INV-12", None)
    assert matches_search(None, "anything")
    assert not matches_search("x", None, "", "abc")


def test_unique_values_sorted_and_truthy():
    records = [{"status": "Paid"}, {"status": "Draft"}, {"status": None}, {"status": "Paid"}, {}]
    assert unique_values(records, "status") == ["Draft", "Paid"]


def test_clean_text():
    assert clean_text("  hi ") == "hi"
    assert clean_text("   ") is None
    assert clean_text(None) is None
