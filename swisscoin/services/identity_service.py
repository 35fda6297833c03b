"""
Identity claim service - ties ledger rows recorded against a phone number to
the profile that verifies that number.

Phone state per profile:
    unverified -> verifying -> verified
    verified (conflict) -> merged   (the absorbed profile)

Linking runs in a single MongoDB transaction:
1. Look up another active profile with the same phone hash
2a. None: attach the phone to the requester
2b. Found: merge it into the requester (requester survives)
3. Claim every unowned row recorded against the phone hash

Any failure aborts the transaction, so the two profiles are never left
half-merged and no row is ever claimed twice.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from swisscoin.core.errors import InvalidRequestError, LinkingFailedError, ProviderNotConfiguredError
from swisscoin.core.logging import short_hash
from swisscoin.models.participant import CLAIM_TABLES, AccountMergeLog
from swisscoin.models.profile import PhoneStatus, ProfileInDB
from swisscoin.repositories.participant_repo import ParticipantRepository
from swisscoin.repositories.profile_repo import ProfileRepository
from swisscoin.schemas.identity import ClaimPendingResponse, PhoneVerifyResponse
from swisscoin.services.verification_service import TwilioVerifyClient
from swisscoin.utils.phone import hash_phone_number, is_e164, is_valid_otp_code

logger = structlog.get_logger(__name__)


class IdentityService:
    def __init__(self, db: AsyncIOMotorDatabase, provider: Optional[TwilioVerifyClient] = None):
        self.db = db
        self.provider = provider
        self.profiles = ProfileRepository(db)
        self.participants = ParticipantRepository(db)

    async def send_code(self, profile: ProfileInDB, phone: Optional[str]) -> str:
        """Request a code for a phone and move the profile to `verifying`."""
        if not phone:
            raise InvalidRequestError("Phone number is required")
        if not is_e164(phone):
            raise InvalidRequestError("Invalid phone number format")

        status = await self._require_provider().send_code(phone)
        await self.profiles.set_phone_status(profile.id, PhoneStatus.VERIFYING, pending_phone=phone)
        return status

    async def verify_phone(
        self,
        profile: ProfileInDB,
        phone: Optional[str],
        code: Optional[str]
    ) -> PhoneVerifyResponse:
        """
        Check a code with the provider, then link the phone.

        Provider rejections propagate and leave the profile in `verifying`.
        """
        if not phone or not code:
            raise InvalidRequestError("Phone and code are required")
        if not is_valid_otp_code(code):
            raise InvalidRequestError("Invalid code format")
        if not is_e164(phone):
            raise InvalidRequestError("Invalid phone number format")

        provider = self._require_provider()
        if profile.phone_status != PhoneStatus.VERIFYING:
            await self.profiles.set_phone_status(profile.id, PhoneStatus.VERIFYING, pending_phone=phone)

        await provider.check_code(phone, code)
        return await self.link_phone(profile.id, phone)

    async def link_phone(self, profile_id: str, phone: str) -> PhoneVerifyResponse:
        """Merge-check and attach a verified phone, claiming its pending rows."""
        phone_hash = hash_phone_number(phone)
        log = logger.bind(profile_id=profile_id, phone_hash=short_hash(phone_hash))

        try:
            async with await self.db.client.start_session() as session:
                async with session.start_transaction():
                    existing = await self.profiles.find_active_by_phone_hash(
                        phone_hash, exclude_id=profile_id, session=session
                    )

                    if existing is None:
                        if not await self.profiles.attach_phone(profile_id, phone, phone_hash, session=session):
                            raise LinkingFailedError("Failed to save phone number")
                        claimed = await self._claim(profile_id, phone_hash, session)
                        response = PhoneVerifyResponse(action="phone_verified", claimed=claimed)
                    else:
                        transferred = await self.merge_accounts(
                            profile_id, existing.id, phone, phone_hash, session
                        )
                        claimed = await self._claim(profile_id, phone_hash, session)
                        response = PhoneVerifyResponse(
                            action="accounts_merged",
                            merged_profile_name=existing.display_name,
                            data_transferred=transferred,
                            claimed=claimed
                        )
        except LinkingFailedError:
            log.error("phone_link_failed")
            raise
        except PyMongoError as exc:
            log.error("phone_link_failed", error=str(exc))
            raise LinkingFailedError() from exc

        log.info("phone_linked", action=response.action, claimed=claimed.total_claimed)
        return response

    async def merge_accounts(
        self,
        survivor_id: str,
        absorbed_id: str,
        phone: str,
        phone_hash: str,
        session
    ) -> Dict[str, int]:
        """
        Move everything owned by the absorbed profile onto the survivor.

        Must run inside the caller's transaction. Returns per-table counts.
        """
        if survivor_id == absorbed_id:
            raise LinkingFailedError("Cannot merge user with self")

        counts: Dict[str, int] = {}
        for table in CLAIM_TABLES:
            moved = await self.participants.reassign_owner(table, absorbed_id, survivor_id, session=session)
            moved += await self.participants.reassign_source(table, absorbed_id, survivor_id, session=session)
            counts[table.label] = moved

        counts["persons"] = await self.profiles.repoint_linked_persons(absorbed_id, survivor_id, session=session)

        if not await self.profiles.tombstone_merged(absorbed_id, session=session):
            raise LinkingFailedError()
        if not await self.profiles.attach_phone(survivor_id, phone, phone_hash, session=session):
            raise LinkingFailedError()

        await self.profiles.insert_merge_log(
            AccountMergeLog(
                survivor_user_id=survivor_id,
                absorbed_user_id=absorbed_id,
                phone_number=phone,
                phone_hash=phone_hash,
                tables_affected=counts,
                created_at=datetime.now(timezone.utc)
            ),
            session=session
        )

        logger.info("accounts_merged", survivor_id=survivor_id, absorbed_id=absorbed_id, **counts)
        return counts

    async def claim_pending(self, profile_id: str) -> ClaimPendingResponse:
        """Claim unowned rows for the caller's phone hash. Idempotent."""
        profile = await self.profiles.get_profile(profile_id)
        if profile is None or not profile.phone_hash:
            return ClaimPendingResponse()

        async with await self.db.client.start_session() as session:
            async with session.start_transaction():
                claimed = await self._claim(profile_id, profile.phone_hash, session)

        logger.info(
            "pending_rows_claimed",
            profile_id=profile_id,
            phone_hash=short_hash(profile.phone_hash),
            claimed=claimed.total_claimed
        )
        return claimed

    async def _claim(self, profile_id: str, phone_hash: str, session) -> ClaimPendingResponse:
        claimed_ids: Dict[str, list] = {}
        for table in CLAIM_TABLES:
            docs = await self.participants.claim_unowned(table, phone_hash, profile_id, session=session)
            claimed_ids[table.label] = [str(doc[table.parent_field]) for doc in docs]

        return ClaimPendingResponse(
            claimed_transactions=len(claimed_ids["transactions"]),
            claimed_settlements=len(claimed_ids["settlements"]),
            claimed_subscriptions=len(claimed_ids["subscriptions"]),
            claimed_reminders=len(claimed_ids["reminders"]),
            transaction_ids=claimed_ids["transactions"],
            settlement_ids=claimed_ids["settlements"],
            subscription_ids=claimed_ids["subscriptions"],
            reminder_ids=claimed_ids["reminders"]
        )

    def _require_provider(self) -> TwilioVerifyClient:
        if self.provider is None:
            logger.error("verification_provider_missing")
            raise ProviderNotConfiguredError()
        return self.provider
