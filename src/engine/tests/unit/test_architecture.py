"""Architecture tests using pytest-archon.

These tests enforce DDD architectural boundaries between layers
within the Tenancy bounded context.
"""

from pytest_archon import archrule


class TestTenancyDomainLayerBoundaries:
    """Tests that the domain layer has no forbidden dependencies."""

    def test_domain_does_not_import_application(self):
        """Domain layer should not depend on the application layer.

        The context stack and value objects must be usable without the
        batch executor.
        """
        (
            archrule("domain_no_application")
            .match("tenancy.domain*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )

    def test_domain_does_not_import_infrastructure(self):
        """Domain layer should not depend on settings or logging setup."""
        (
            archrule("domain_no_infrastructure")
            .match("tenancy.domain*")
            .should_not_import("infrastructure*", "tenancy.dependencies")
            .check("tenancy")
        )


class TestTenancyPortsLayerBoundaries:
    """Tests that the ports layer has no forbidden dependencies."""

    def test_ports_does_not_import_application(self):
        """Ports describe operations; they should not know the executor."""
        (
            archrule("ports_no_application")
            .match("tenancy.ports*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )


class TestTenancyApplicationLayerBoundaries:
    """Tests that the application layer has no forbidden dependencies."""

    def test_application_does_not_import_infrastructure(self):
        """The executor receives its configuration; it does not read settings."""
        (
            archrule("application_no_infrastructure")
            .match("tenancy.application*")
            .should_not_import("infrastructure*", "tenancy.dependencies")
            .check("tenancy")
        )


class TestSharedKernelBoundaries:
    """Tests that the shared kernel stays independent of bounded contexts."""

    def test_shared_kernel_does_not_import_tenancy(self):
        (
            archrule("shared_kernel_no_tenancy")
            .match("shared_kernel*")
            .should_not_import("tenancy*")
            .check("shared_kernel")
        )
