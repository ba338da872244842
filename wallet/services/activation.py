"""
Activation eligibility — may this account receive an IBAN?

No eligibility rules have been defined yet, so the default policy admits
every account. The predicate is pluggable: deployments (or tests) can
install their own with set_activation_policy() without touching
account_service, which only ever calls can_activate().
"""

from typing import Callable

from wallet.models.account import Account

ActivationPolicy = Callable[[Account], bool]


def always_eligible(account: Account) -> bool:
    return True


_policy: ActivationPolicy = always_eligible


def can_activate(account: Account) -> bool:
    """Return True if the account may be given an ActiveAccountComponent."""
    return _policy(account)


def set_activation_policy(policy: ActivationPolicy) -> None:
    global _policy
    _policy = policy


def reset_activation_policy() -> None:
    set_activation_policy(always_eligible)
