"""All governance error definitions."""

from __future__ import annotations

from community_wallet.errors.governance_errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    GovernanceError,
    NotFoundError,
)

# -- Authentication --------------------------------------------------------

ErrUnauthorized = GovernanceError("please authenticate", status_code=401, code="unauthorized")
ErrInsufficientRights = ForbiddenError("insufficient rights", code="insufficient-rights")
ErrNotWalletAdmin = GovernanceError(
    "user not admin of wallet", status_code=401, code="not-wallet-admin"
)
ErrNotCurrentWalletAdmin = GovernanceError(
    "user not admin of current wallet", status_code=401, code="not-current-wallet-admin"
)
ErrNotDraftWalletAuthor = GovernanceError(
    "user not author of draft wallet", status_code=401, code="not-draft-wallet-author"
)

# -- Validation ------------------------------------------------------------

ErrInvalidAddress = BadRequestError("invalid address", code="invalid-address")
ErrInvalidAmount = BadRequestError("amount must be a positive number", code="invalid-amount")
ErrAmountPrecision = BadRequestError(
    "amount has more than 18 decimal places", code="amount-precision"
)
ErrMissingCategoryDescription = BadRequestError(
    "category other requires a description", code="missing-category-description"
)
ErrInvalidFilter = BadRequestError("invalid filter or sort field", code="invalid-filter")
ErrDuplicateEntity = BadRequestError(
    "entity violates a uniqueness constraint", code="duplicate-entity"
)

# -- Draft wallet ----------------------------------------------------------

ErrDraftWalletNotFound = NotFoundError("draft wallet not found", code="draft-wallet-not-found")
ErrDraftWalletRequired = NotFoundError(
    "non-activated draft wallet required", code="draft-wallet-required"
)
ErrDraftWalletAddressTaken = BadRequestError(
    "draft wallet address already taken", code="draft-wallet-address-taken"
)
ErrDraftWalletAuthorPresent = BadRequestError(
    "author already has a draft wallet", code="draft-wallet-author-present"
)
ErrDraftWalletContractMismatch = ForbiddenError(
    "draft wallet address not consistent with supplied address",
    code="draft-wallet-contract-mismatch",
)
ErrDraftWalletFull = BadRequestError(
    "draft wallet has reached its max number of signers", code="draft-wallet-full"
)
ErrDraftWalletSignerPresent = BadRequestError(
    "draft wallet already possesses this signer", code="draft-wallet-signer-present"
)
ErrDraftWalletNotEnoughSigners = BadRequestError(
    "draft wallet does not have enough signers", code="draft-wallet-not-enough-signers"
)
ErrDraftWalletConflict = ConflictError(
    "draft wallet signers changed concurrently, retry", code="draft-wallet-conflict"
)

# -- Oracle consistency ----------------------------------------------------

ErrContractInconsistent = ForbiddenError(
    "data inconsistency with new contract", code="contract-inconsistent"
)
ErrMultisigInconsistent = ForbiddenError(
    "data inconsistency with new multisig contract", code="multisig-inconsistent"
)
ErrMultisigNoSigners = ForbiddenError("no signers on multisig contract", code="multisig-no-signers")
ErrSignerNotOnContract = ForbiddenError(
    "signer not present on multisig contract", code="signer-not-on-contract"
)
ErrSignersInconsistent = ForbiddenError(
    "draft wallet signers inconsistent with multisig signers", code="signers-inconsistent"
)
ErrSendNotOnContract = ForbiddenError(
    "matching send not present on multisig contract", code="send-not-on-contract"
)
ErrPushNotOnContract = ForbiddenError(
    "multisig contract does not report enough executed sends", code="push-not-on-contract"
)
ErrBalanceChangeMissing = ForbiddenError(
    "no balance change found for recipient", code="balance-change-missing"
)
ErrBalanceChangeInconsistent = ForbiddenError(
    "balance change inconsistent with draft transaction", code="balance-change-inconsistent"
)

# -- Wallet ----------------------------------------------------------------

ErrWalletNotFound = NotFoundError("wallet not found", code="wallet-not-found")
ErrCurrentWalletNotFound = NotFoundError("current wallet not found", code="current-wallet-not-found")
ErrNoCurrentWalletNorSoleAdmin = NotFoundError(
    "current wallet not found, and more than 1 admin", code="no-current-wallet-nor-sole-admin"
)
ErrWalletAddressTaken = BadRequestError(
    "wallet address already taken", code="wallet-address-taken"
)
ErrRoundConflict = ConflictError(
    "another wallet was activated concurrently, retry", code="round-conflict"
)
ErrWalletActivationFailed = GovernanceError(
    "error with activate wallet transaction", status_code=500, code="wallet-activation-failed"
)

# -- Proposal --------------------------------------------------------------

ErrProposalNotFound = NotFoundError("proposal not found", code="proposal-not-found")
ErrProposalOracleTaken = BadRequestError(
    "proposal oracle already taken", code="proposal-oracle-taken"
)

# -- Draft transaction -----------------------------------------------------

ErrDraftTransactionNotFound = NotFoundError(
    "draft transaction not found", code="draft-transaction-not-found"
)
ErrDraftTransactionWalletTaken = BadRequestError(
    "wallet already has a draft transaction", code="draft-transaction-wallet-taken"
)
ErrDraftTransactionSignerPresent = BadRequestError(
    "draft transaction already signed by this signer", code="draft-transaction-signer-present"
)
ErrDraftTransactionNotEnoughSends = BadRequestError(
    "draft transaction does not have enough sends", code="draft-transaction-not-enough-sends"
)
ErrDraftTransactionConflict = ConflictError(
    "draft transaction sends changed concurrently, retry", code="draft-transaction-conflict"
)

# -- Transaction -----------------------------------------------------------

ErrTransactionNotFound = NotFoundError("transaction not found", code="transaction-not-found")
ErrTransactionHashTaken = ConflictError(
    "transaction hash already recorded for another draft", code="transaction-hash-taken"
)
ErrTransactionExecutionFailed = GovernanceError(
    "error with execute draft transaction", status_code=500, code="transaction-execution-failed"
)

# -- User ------------------------------------------------------------------

ErrUserNotFound = NotFoundError("user not found", code="user-not-found")
