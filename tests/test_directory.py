from __future__ import annotations

import threading

import pytest

from userhub.directory import SEED_USERS, UserDirectory, UserNotFoundError, parse_positive_int


@pytest.fixture()
def directory() -> UserDirectory:
    return UserDirectory()


def test_seed_directory_holds_ten_users_in_order(directory: UserDirectory) -> None:
    users = directory.all()
    assert len(users) == 10
    assert [user.id for user in users] == list(range(1, 11))
    assert users[0].name == "Alice Johnson"
    assert users[-1].email == "jack@example.com"
    assert directory.next_id == 11


def test_first_page_returns_five_records(directory: UserDirectory) -> None:
    page = directory.list(1, 5)
    assert [user.id for user in page.users] == [1, 2, 3, 4, 5]
    assert page.page == 1
    assert page.limit == 5
    assert page.total_pages == 2
    assert page.total_users == 10


def test_out_of_range_page_is_empty(directory: UserDirectory) -> None:
    page = directory.list(7, 5)
    assert page.users == ()
    assert page.page == 7
    assert page.total_pages == 2


def test_partial_last_page_is_clipped(directory: UserDirectory) -> None:
    page = directory.list(3, 4)
    assert [user.id for user in page.users] == [9, 10]
    assert page.total_pages == 3


@pytest.mark.parametrize(
    ("page", "limit", "expected_page", "expected_limit"),
    [
        (None, None, 1, 5),
        ("abc", "xyz", 1, 5),
        ("0", "0", 1, 5),
        ("-2", "-1", 1, 5),
        ("2abc", "3", 2, 3),
    ],
)
def test_pagination_defaults(directory, page, limit, expected_page, expected_limit) -> None:
    result = directory.list(page, limit)
    assert result.page == expected_page
    assert result.limit == expected_limit


def test_parse_positive_int_reads_leading_integer() -> None:
    assert parse_positive_int(" 12 apples", 1) == 12
    assert parse_positive_int("+4", 1) == 4
    assert parse_positive_int(7, 1) == 7
    assert parse_positive_int(True, 9) == 9
    assert parse_positive_int("", 3) == 3
    assert parse_positive_int("\u0663", 2) == 2
    assert parse_positive_int("1\u0663", 2) == 1


def test_create_appends_with_increasing_identifier(directory: UserDirectory) -> None:
    existing = [user.id for user in directory.all()]
    user = directory.create("X", "x@y.com")

    assert user.id > max(existing)
    last_page = directory.list(3, 5)
    assert last_page.users[-1] == user
    assert last_page.total_users == 11


@pytest.mark.parametrize(("name", "email"), [("", "a@b.c"), ("Name", ""), (None, "a@b.c"), ("Name", None)])
def test_create_requires_name_and_email(directory: UserDirectory, name, email) -> None:
    with pytest.raises(ValueError):
        directory.create(name, email)
    assert len(directory) == 10
    assert directory.next_id == 11


def test_whitespace_only_fields_are_stored_as_submitted(directory: UserDirectory) -> None:
    user = directory.create("  ", " ")
    assert user.name == "  "
    assert user.email == " "
    assert directory.get(user.id) == user


def test_create_does_not_validate_email_format(directory: UserDirectory) -> None:
    user = directory.create("Loose", "not-an-email")
    assert user.email == "not-an-email"


def test_delete_unknown_identifier_leaves_directory_unchanged(directory: UserDirectory) -> None:
    before = directory.all()
    with pytest.raises(UserNotFoundError):
        directory.delete(999)
    assert directory.all() == before


def test_create_then_delete_restores_order(directory: UserDirectory) -> None:
    before = directory.all()
    user = directory.create("Temp", "temp@example.com")
    removed = directory.delete(user.id)

    assert removed == user
    assert directory.all() == before


def test_identifiers_are_never_reused(directory: UserDirectory) -> None:
    highest = directory.all()[-1]
    directory.delete(highest.id)
    replacement = directory.create("Newcomer", "new@example.com")

    assert replacement.id > highest.id
    with pytest.raises(UserNotFoundError):
        directory.get(highest.id)


def test_custom_seed_and_empty_directory() -> None:
    empty = UserDirectory(users=[])
    page = empty.list()
    assert page.users == ()
    assert page.total_pages == 0
    assert page.total_users == 0

    custom = UserDirectory(users=[("Solo", "solo@example.com")], default_page_size=2)
    assert custom.list().limit == 2
    assert custom.get(1).name == "Solo"
    assert len(SEED_USERS) == 10


def test_default_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        UserDirectory(default_page_size=0)


def test_concurrent_creates_assign_unique_identifiers(directory: UserDirectory) -> None:
    def worker(index: int) -> None:
        for offset in range(25):
            directory.create(f"Worker {index}-{offset}", f"w{index}-{offset}@example.com")

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    identifiers = [user.id for user in directory.all()]
    assert len(identifiers) == 10 + 8 * 25
    assert len(set(identifiers)) == len(identifiers)
    assert directory.next_id == max(identifiers) + 1
