class BillingClientError(Exception):
    pass


class AuthenticationError(BillingClientError):
    pass


class ProviderUnavailable(BillingClientError):
    pass


class InvalidBillingResponse(BillingClientError):
    pass


class CheckoutCreationFailed(BillingClientError):
    pass


class PortalCreationFailed(BillingClientError):
    pass
