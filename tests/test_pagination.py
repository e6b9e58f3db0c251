from __future__ import annotations

import pytest

from taskapi.src.models.task import Task
from taskapi.src.utils.pagination import Page, normalize_page_params, paginate

from .helpers import make_user


def test_concatenated_pages_reproduce_the_full_ordered_set(session) -> None:
    alice = make_user(session)
    session.add_all([Task(name=f'task {i}', owner_id=alice.id) for i in range(23)])
    session.commit()
    query = session.query(Task).order_by(Task.id.asc())
    expected = [task.id for task in query.all()]

    collected = []
    page_number = 1
    while True:
        page = paginate(query, page_number, 5)
        collected.extend(task.id for task in page.items)
        if not page.has_more:
            break
        page_number = page.next_page

    assert collected == expected
    assert page_number == 5


def test_exact_multiple_has_no_phantom_next_page(session) -> None:
    alice = make_user(session)
    session.add_all([Task(name=f'task {i}', owner_id=alice.id) for i in range(10)])
    session.commit()

    page = paginate(session.query(Task).order_by(Task.id), 2, 5)

    assert len(page.items) == 5
    assert page.has_more is False
    assert page.next_page is None


def test_page_beyond_end_is_empty(session) -> None:
    page = paginate(session.query(Task).order_by(Task.id), 3, 10)

    assert page.items == []
    assert page.first_index is None
    assert page.to_dict(lambda t: t)['meta']['from'] is None


def test_envelope_metadata_and_links() -> None:
    page = Page(items=['c', 'd'], page=2, per_page=2, has_more=True)

    encoded = page.to_dict(str.upper, lambda n: f'/tasks?page={n}')

    assert encoded['data'] == ['C', 'D']
    assert encoded['meta'] == {
        'current_page': 2,
        'per_page': 2,
        'from': 3,
        'to': 4,
        'has_more': True,
        'next_page': 3,
        'prev_page': 1,
    }
    assert encoded['links'] == {'first': '/tasks?page=1', 'prev': '/tasks?page=1', 'next': '/tasks?page=3'}


@pytest.mark.parametrize(
    ('raw', 'expected'),
    [
        ((None, None), (1, 10)),
        ((0, 0), (1, 10)),
        ((-3, 5), (1, 5)),
        ((2, 500), (2, 100)),
    ],
)
def test_normalize_page_params(raw, expected) -> None:
    assert normalize_page_params(*raw, default_per_page=10, max_per_page=100) == expected
