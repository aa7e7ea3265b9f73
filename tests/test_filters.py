import pytest

from scim2_checker import ComparisonFilter
from scim2_checker import Filter
from scim2_checker import FilterType
from scim2_checker import Path
from scim2_checker.filters import and_
from scim2_checker.filters import co
from scim2_checker.filters import eq
from scim2_checker.filters import has_complex_value
from scim2_checker.filters import le
from scim2_checker.filters import not_
from scim2_checker.filters import or_
from scim2_checker.filters import pr


def test_factories():
    filter = eq("userName", "bjensen")
    assert filter.filter_type == FilterType.equal
    assert filter.attribute_path == Path.from_string("userName")
    assert filter.comparison_value == "bjensen"

    assert pr("title").filter_type == FilterType.present
    assert not_(pr("title")).filter_type == FilterType.not_
    assert has_complex_value("emails", pr("value")).filter_type == FilterType.complex_value


def test_filter_type_categories():
    assert FilterType.contains.is_comparison
    assert FilterType.contains.is_substring
    assert not FilterType.contains.is_ordering
    assert FilterType.less_or_equal.is_ordering
    assert not FilterType.present.is_comparison
    assert not FilterType.and_.is_comparison


def test_render():
    assert str(eq("userName", "bjensen")) == 'userName eq "bjensen"'
    assert str(le("loginCount", 3)) == "loginCount le 3"
    assert str(eq("active", True)) == "active eq true"
    assert str(eq("nickName", None)) == "nickName eq null"
    assert str(and_(co("title", "dev"), pr("nickName"))) == '(title co "dev" and nickName pr)'
    assert str(not_(pr("title"))) == "not (title pr)"
    assert str(not_(or_(pr("a"), pr("b")))) == "not (a pr or b pr)"
    assert str(has_complex_value("emails", eq("type", "work"))) == 'emails[type eq "work"]'


def test_render_can_be_parsed_back():
    filter = or_(
        and_(eq("userName", "bjensen"), not_(pr("title"))),
        has_complex_value("emails", eq("type", "work")),
    )
    assert Filter.from_string(str(filter)) == filter


def test_combining_filters_need_two_components():
    with pytest.raises(ValueError, match="at least two components"):
        and_(pr("title"))


def test_comparison_filters_need_comparison_operator():
    with pytest.raises(ValueError, match="not a comparison operator"):
        ComparisonFilter(FilterType.present, Path.from_string("title"), None)


def test_filters_are_hashable():
    assert len({eq("userName", "a"), eq("USERNAME", "a")}) == 1
