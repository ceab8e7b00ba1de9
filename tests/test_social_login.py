import pytest

from accounts.domain.exceptions import RegistrationDisabledError
from accounts.domain.models import SocialProfile


def test_existing_email_links_provider_without_new_user(account_service, persistence, alice):
    profile = SocialProfile(id="gh-42", email="Alice@Example.com", name="Alice on GitHub")

    user = account_service.find_or_create_social("github", profile)

    assert user.id == alice.id
    links = persistence.list_social_logins(alice.id)
    assert [(link.provider, link.provider_id) for link in links] == [("github", "gh-42")]


def test_resolving_twice_never_duplicates_the_link(account_service, persistence, alice):
    profile = SocialProfile(id="gh-42", email=alice.email, name="Alice")

    first = account_service.find_or_create_social("github", profile)
    second = account_service.find_or_create_social("github", profile)

    assert first.id == second.id == alice.id
    assert len(persistence.list_social_logins(alice.id)) == 1


def test_missing_email_uses_placeholder_and_creates_active_user(account_service, user_service, persistence):
    profile = SocialProfile(id="1234", email=None, name="Anonymous Tweeter")

    user = account_service.find_or_create_social("twitter", profile)

    assert user.email == "1234@twitter.com"
    assert user.name == "Anonymous Tweeter"
    assert user.is_active is True
    assert user.password_hash == ""
    assert persistence.get_social_login(user.id, "twitter").provider_id == "1234"

    again = account_service.find_or_create_social("twitter", profile)
    assert again.id == user.id
    assert user_service.get_by_email("1234@twitter.com").id == user.id


def test_two_providers_with_same_email_merge_into_one_account(account_service, persistence):
    google = account_service.find_or_create_social("google", SocialProfile(id="g-1", email="zoe@example.com"))
    github = account_service.find_or_create_social("github", SocialProfile(id="h-9", email="zoe@example.com"))

    assert google.id == github.id
    providers = [link.provider for link in persistence.list_social_logins(google.id)]
    assert providers == ["github", "google"]


def test_unknown_identity_is_rejected_when_registration_disabled(make_account_service, user_service):
    service = make_account_service(registration_enabled=False)

    with pytest.raises(RegistrationDisabledError):
        service.find_or_create_social("github", SocialProfile(id="7", email="new@example.com"))

    assert user_service.get_by_email("new@example.com") is None


def test_known_identity_still_resolves_when_registration_disabled(make_account_service, alice, persistence):
    service = make_account_service(registration_enabled=False)

    user = service.find_or_create_social("github", SocialProfile(id="7", email=alice.email))

    assert user.id == alice.id
    assert persistence.get_social_login(alice.id, "github") is not None
