import pytest

from sitemapper.entry import SitemapEntry
from sitemapper.splitter import IndexPlan, SinglePlan, plan_sitemap


INDEX_URL = 'http://localhost:1337/api/sitemap/index.xml'


def make_entries(count):
    return [SitemapEntry('/page/{}'.format(i), 'monthly', 0.5)
        for i in range(count)]


def test_single_document_within_limit():
    entries = make_entries(10)
    plan = plan_sitemap(entries, 10, INDEX_URL)
    assert isinstance(plan, SinglePlan)
    assert not plan.is_index
    assert plan.document_count == 1
    assert plan.entries is entries


def test_index_above_limit():
    entries = make_entries(11)
    plan = plan_sitemap(entries, 5, INDEX_URL)
    assert isinstance(plan, IndexPlan)
    assert plan.is_index
    assert repr(plan) == '<IndexPlan entries=11 children=3>'
    children = list(plan.children())
    assert [child.delta for child in children] == [1, 2, 3]
    assert [len(child.entries) for child in children] == [5, 5, 1]
    assert children[0].url == INDEX_URL + '?page=1'
    assert children[2].url == INDEX_URL + '?page=3'
    assert plan.child_urls() == [child.url for child in children]
    # Entries keep their order across children.
    flattened = [e for child in children for e in child.entries]
    assert flattened == entries


def test_index_children_are_lazy():
    plan = plan_sitemap(make_entries(6), 2, INDEX_URL)
    children = plan.children()
    first = next(children)
    assert first.delta == 1
    assert [e.url for e in first.entries] == ['/page/0', '/page/1']


def test_large_index():
    plan = plan_sitemap(make_entries(60_000), 50_000, INDEX_URL)
    children = list(plan.children())
    assert [child.delta for child in children] == [1, 2]
    assert [len(child.entries) for child in children] == [50_000, 10_000]
    assert plan.document_count == 3


def test_invalid_limit():
    with pytest.raises(ValueError):
        plan_sitemap(make_entries(1), 0, INDEX_URL)
