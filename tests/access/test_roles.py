"""
Tests for role classification and the role hierarchy.

Covers group precedence, inheritance of grants down the
Admin -> Owner -> Consumer chain, and capability flags.
"""
import pytest

from devportal.domain.schemas import Identity, Role
from devportal.services.access import (
    Action,
    Grant,
    GrantScope,
    PermissionRegistry,
    RoleClassifier,
    RoleHierarchy,
    default_hierarchy,
)
from tests.fixtures.access import AccessTestData, make_settings


@pytest.fixture
def classifier():
    return RoleClassifier.from_settings(make_settings())


class TestRoleClassifier:
    """Test group-based role classification."""

    @pytest.mark.parametrize(
        "groups,expected",
        [
            ({"group:default/platform-engineers"}, Role.ADMIN),
            ({"group:default/platform-admins"}, Role.ADMIN),
            ({"group:default/api-owners"}, Role.OWNER),
            ({"group:default/app-developers"}, Role.OWNER),
            ({"group:default/api-consumers"}, Role.CONSUMER),
            ({"group:default/guests"}, Role.UNKNOWN),
            (set(), Role.UNKNOWN),
        ],
    )
    def test_classify_single_group(self, classifier, groups, expected):
        """Test each configured group maps to its role."""
        # Arrange
        identity = Identity(id="user:default/someone", groups=frozenset(groups))

        # Act & Assert
        assert classifier.classify(identity) == expected

    def test_precedence_admin_over_owner_and_consumer(self, classifier):
        """Test a member of every group is classified as Admin."""
        # Arrange
        identity = Identity(
            id="user:default/multi",
            groups=frozenset({
                AccessTestData.CONSUMER_GROUP,
                AccessTestData.OWNER_GROUP,
                AccessTestData.ADMIN_GROUP,
            }),
        )

        # Act & Assert
        assert classifier.classify(identity) == Role.ADMIN

    def test_precedence_owner_over_consumer(self, classifier):
        """Test owner membership wins over consumer membership."""
        identity = Identity(
            id="user:default/multi",
            groups=frozenset({AccessTestData.CONSUMER_GROUP, AccessTestData.OWNER_GROUP}),
        )

        assert classifier.classify(identity) == Role.OWNER

    def test_anonymous_is_unknown(self, classifier):
        """Test a missing identity has the unknown role."""
        assert classifier.classify(None) == Role.UNKNOWN

    def test_group_matching_ignores_case(self, classifier):
        """Test group references compare case-insensitively."""
        assert classifier.classify_groups({"Group:Default/API-Owners"}) == Role.OWNER

    def test_custom_group_configuration(self):
        """Test group lists come from settings."""
        # Arrange
        settings = make_settings(ADMIN_GROUPS="group:ops/sre", OWNER_GROUPS="", CONSUMER_GROUPS="group:ops/devs")
        classifier = RoleClassifier.from_settings(settings)

        # Act & Assert
        assert classifier.classify_groups({"group:ops/sre"}) == Role.ADMIN
        assert classifier.classify_groups({"group:ops/devs"}) == Role.CONSUMER
        assert classifier.classify_groups({"group:default/platform-engineers"}) == Role.UNKNOWN

    def test_capabilities_follow_role_order(self, classifier):
        """Test capability flags include every lower role."""
        admin = classifier.capabilities(Role.ADMIN)
        owner = classifier.capabilities(Role.OWNER)
        consumer = classifier.capabilities(Role.CONSUMER)
        unknown = classifier.capabilities(Role.UNKNOWN)

        assert (admin.is_platform_engineer, admin.is_api_owner, admin.is_api_consumer) == (True, True, True)
        assert (owner.is_platform_engineer, owner.is_api_owner, owner.is_api_consumer) == (False, True, True)
        assert (consumer.is_platform_engineer, consumer.is_api_owner, consumer.is_api_consumer) == (False, False, True)
        assert (unknown.is_platform_engineer, unknown.is_api_owner, unknown.is_api_consumer) == (False, False, False)


class TestRoleOrder:
    """Test the total order on roles."""

    def test_rank_order(self):
        assert Role.ADMIN.rank > Role.OWNER.rank > Role.CONSUMER.rank > Role.UNKNOWN.rank

    def test_at_least(self):
        assert Role.ADMIN.at_least(Role.OWNER)
        assert Role.OWNER.at_least(Role.OWNER)
        assert not Role.CONSUMER.at_least(Role.OWNER)


class TestRoleHierarchy:
    """Test role hierarchy functionality."""

    def test_default_inheritance_chain(self):
        """Test Admin inherits Owner which inherits Consumer."""
        hierarchy = default_hierarchy()

        assert hierarchy.get_parent_roles(Role.OWNER) == {Role.CONSUMER}
        assert hierarchy.get_parent_roles(Role.ADMIN) == {Role.OWNER}
        assert hierarchy.get_all_parent_roles(Role.ADMIN) == {Role.OWNER, Role.CONSUMER}
        assert hierarchy.get_all_parent_roles(Role.CONSUMER) == set()

    def test_child_roles(self):
        hierarchy = default_hierarchy()

        assert hierarchy.get_child_roles(Role.CONSUMER) == {Role.OWNER}

    def test_circular_dependency_rejected(self):
        """Test inheritance cycles are refused."""
        # Arrange
        hierarchy = RoleHierarchy()
        hierarchy.add_inheritance(Role.OWNER, Role.CONSUMER)

        # Act & Assert
        with pytest.raises(ValueError):
            hierarchy.add_inheritance(Role.CONSUMER, Role.OWNER)
        with pytest.raises(ValueError):
            hierarchy.add_inheritance(Role.ADMIN, Role.ADMIN)


class TestPermissionRegistry:
    """Test grant registration and inheritance."""

    def test_owner_inherits_consumer_grants(self):
        """Test an owner holds every consumer grant."""
        registry = PermissionRegistry()

        consumer_grants = registry.get_effective_grants(Role.CONSUMER)
        owner_grants = registry.get_effective_grants(Role.OWNER)

        assert consumer_grants <= owner_grants

    def test_admin_holds_every_action_unconditionally(self):
        registry = PermissionRegistry()

        for action in Action:
            assert GrantScope.ANY in registry.get_scopes(Role.ADMIN, action)

    def test_unknown_role_has_no_grants(self):
        registry = PermissionRegistry()

        assert registry.get_actions(Role.UNKNOWN) == set()
        with pytest.raises(ValueError):
            registry.register_grant(Role.UNKNOWN, Grant(action=Action.APIPRODUCT_READ, scope=GrantScope.ANY))

    def test_consumer_cannot_review(self):
        registry = PermissionRegistry()

        assert registry.get_scopes(Role.CONSUMER, Action.ACCESSREQUEST_APPROVE) == set()
        assert registry.get_scopes(Role.CONSUMER, Action.ACCESSREQUEST_REJECT) == set()

    def test_owner_review_limited_to_owned_products(self):
        registry = PermissionRegistry()

        assert registry.get_scopes(Role.OWNER, Action.ACCESSREQUEST_APPROVE) == {GrantScope.OWNED_PRODUCT}
