"""Test factories using factory_boy."""

import factory

from gitlobster.core.models.gitlab import Group, Project, User


class ProjectFactory(factory.Factory):
    """Factory for creating Project instances."""

    class Meta:
        model = Project

    id = factory.Sequence(lambda n: n + 1)
    path = factory.Sequence(lambda n: f"project-{n}")
    path_with_namespace = factory.LazyAttribute(lambda o: f"team/{o.path}")
    name = factory.LazyAttribute(lambda o: o.path.replace("-", " ").title())
    description = factory.Faker("sentence")
    ssh_url_to_repo = factory.LazyAttribute(
        lambda o: f"git@gitlab.local:{o.path_with_namespace}.git"
    )
    http_url_to_repo = factory.LazyAttribute(
        lambda o: f"https://gitlab.local/{o.path_with_namespace}.git"
    )
    default_branch = "main"
    empty_repo = False


class GroupFactory(factory.Factory):
    """Factory for creating Group instances."""

    class Meta:
        model = Group

    id = factory.Sequence(lambda n: n + 1000)
    path = factory.Sequence(lambda n: f"group-{n}")
    full_path = factory.LazyAttribute(lambda o: o.path)
    name = factory.LazyAttribute(lambda o: o.path.title())
    parent_id = None


class UserFactory(factory.Factory):
    """Factory for creating User instances."""

    class Meta:
        model = User

    id = factory.Sequence(lambda n: n + 1)
    username = factory.Faker("user_name")
    name = factory.Faker("name")
