"""
Donation Repository - Data access and lifecycle for donations.

Every write follows the same order: primary row first, donor association
second. Removal always marks deleted_by before the row is deleted.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any, Iterable, Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Select, insert, or_, select
from sqlalchemy.orm import Session, selectinload

from donations.models import Donation, User, utcnow
from donations.schemas import (
    AutocompleteOption,
    DonationInput,
    DonationOutput,
    DonationPage,
)
from shared.config.constants import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    DONATION_SORTABLE_FIELDS,
    Limits,
    SortDirection,
)
from shared.config.logging import get_logger, mask_user_id
from shared.config.settings import get_settings
from shared.infrastructure.db import transaction_scope
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.identifiers import (
    contains_ignore_case,
    is_identifier,
    normalize_identifier,
    normalize_identifier_list,
)

from .base import BaseRepository
from .donation_filters import compile_donation_filter
from .specification import EqualsSpec, Specification, all_of

logger = get_logger(__name__)

# Columns holding identifiers; find_by normalizes these criteria
_IDENTIFIER_COLUMNS = frozenset({"id", "user_id", "created_by_id", "updated_by_id", "deleted_by"})


class DonationRepository(BaseRepository[Donation]):
    """
    Repository for Donation entities.

    Guarantees eager loading of:
    - user (the donor)
    """

    @property
    def model(self) -> type[Donation]:
        return Donation

    @property
    def entity_name(self) -> str:
        return "Donation"

    def _base_query(self) -> Select:
        """Base query with eager loading of the donor."""
        return select(Donation).options(selectinload(Donation.user))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _parse_input(self, data: DonationInput | Mapping[str, Any] | None) -> DonationInput:
        if isinstance(data, DonationInput):
            return data
        try:
            return DonationInput.model_validate(data or {})
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid donation data",
                errors=e.errors(include_url=False),
            ) from e

    def _to_output(self, donation: Donation) -> DonationOutput:
        return DonationOutput.model_validate(donation)

    def _assign_user(self, donation: Donation, user_ref: Any) -> None:
        """
        Replace the donor association.

        None clears it. An unknown user raises NotFoundError.
        """
        if user_ref is None:
            donation.user = None
            return

        user_id = normalize_identifier(user_ref, "user")
        user = self._db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id, donation_id=str(donation.id))
        donation.user = user

    def _ordering(self, sort_field: str | None, sort_direction: str | None) -> list[Any]:
        """
        Resolve ORDER BY clauses.

        No field and no direction: created_at descending. A field without a
        direction sorts ascending. id is always the final tie-breaker.
        """
        if not sort_field and not sort_direction:
            field_name, direction = DEFAULT_SORT_FIELD, DEFAULT_SORT_DIRECTION
        else:
            field_name = DEFAULT_SORT_FIELD
            if sort_field:
                if sort_field not in DONATION_SORTABLE_FIELDS:
                    raise ValidationError(
                        f"Cannot sort donations by '{sort_field}'",
                        field=sort_field,
                    )
                field_name = DONATION_SORTABLE_FIELDS[sort_field]

            direction = (sort_direction or SortDirection.ASC).lower()
            if direction not in SortDirection.ALL:
                raise ValidationError(
                    f"Invalid sort direction '{sort_direction}'",
                    direction=sort_direction,
                )

        column = getattr(Donation, field_name)
        primary = column.asc() if direction == SortDirection.ASC else column.desc()
        if field_name == "id":
            return [primary]
        return [primary, Donation.id.asc()]

    @staticmethod
    def _non_negative_int(value: Any, name: str) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{name} must be an integer", field=name, value=value) from e
        if number < 0:
            raise ValidationError(f"{name} must not be negative", field=name, value=value)
        return number

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create(
        self,
        data: DonationInput | Mapping[str, Any],
        *,
        actor_id: uuid.UUID | None = None,
        commit: bool = True,
    ) -> DonationOutput:
        """
        Create a donation and bind its donor.

        Args:
            data: Donation attributes. Missing attributes are stored as null.
            actor_id: Principal performing the write (may be None).
            commit: Commit when done. Pass False to keep the caller's transaction open.

        Returns:
            The persisted donation with its donor resolved.

        Raises:
            InvalidIdentifierError: If id or user is malformed.
            NotFoundError: If user references an unknown principal.
            DuplicateEntityError: If id or import_hash already exists.
        """
        payload = self._parse_input(data)
        donation_id = normalize_identifier(payload.id, "id") if payload.id is not None else uuid.uuid4()

        with transaction_scope(self._db, "create donation", entity=self.entity_name, commit=commit):
            donation = Donation(
                id=donation_id,
                item=payload.item,
                quantity=payload.quantity,
                location=payload.location,
                import_hash=payload.import_hash,
                active=True if payload.active is None else payload.active,
            )
            donation.set_created_by(actor_id)
            self._db.add(donation)
            self._db.flush()

            self._assign_user(donation, payload.user)

        logger.info(
            "Donation created",
            donation_id=str(donation_id),
            actor_id=mask_user_id(actor_id),
            has_user=payload.user is not None,
        )
        return self._to_output(self.get_or_raise(donation_id))

    def update(
        self,
        donation_id: Any,
        data: DonationInput | Mapping[str, Any],
        *,
        actor_id: uuid.UUID | None = None,
        commit: bool = True,
    ) -> DonationOutput:
        """
        Overwrite a donation's mutable attributes and rebind its donor.

        item, quantity and location are replaced wholesale: an attribute
        missing from data becomes null. The donor is replaced the same way.

        Raises:
            InvalidIdentifierError: If donation_id or user is malformed.
            NotFoundError: If the donation or the referenced user does not exist.
        """
        donation_id = normalize_identifier(donation_id, "id")
        payload = self._parse_input(data)

        with transaction_scope(self._db, "update donation", entity=self.entity_name, commit=commit):
            donation = self.get_or_raise(donation_id)

            donation.item = payload.item
            donation.quantity = payload.quantity
            donation.location = payload.location
            donation.set_updated_by(actor_id)
            self._db.flush()

            self._assign_user(donation, payload.user)

        logger.info(
            "Donation updated",
            donation_id=str(donation_id),
            actor_id=mask_user_id(actor_id),
        )
        return self._to_output(self.get_or_raise(donation_id))

    def bulk_import(
        self,
        items: Iterable[DonationInput | Mapping[str, Any]],
        *,
        actor_id: uuid.UUID | None = None,
        commit: bool = True,
    ) -> list[DonationOutput]:
        """
        Insert a batch of donations in one statement.

        Item i gets created_at = now + i * step so the batch keeps its input
        order even when the clock would give every row the same timestamp.
        Donor associations are not wired here; follow up with update().

        Returns:
            The inserted donations, in input order.

        Raises:
            ValidationError: If any item is invalid (nothing is inserted).
            DuplicateEntityError: If any id or import_hash already exists.
        """
        payloads = [self._parse_input(item) for item in items]
        if not payloads:
            return []

        now = utcnow()
        step = timedelta(milliseconds=get_settings().bulk_import_step_ms)

        rows: list[dict[str, Any]] = []
        for index, payload in enumerate(payloads):
            created_at = now + index * step
            rows.append({
                "id": normalize_identifier(payload.id, "id") if payload.id is not None else uuid.uuid4(),
                "item": payload.item,
                "quantity": payload.quantity,
                "location": payload.location,
                "import_hash": payload.import_hash,
                "active": True if payload.active is None else payload.active,
                "created_by_id": actor_id,
                "updated_by_id": actor_id,
                "created_at": created_at,
                "updated_at": created_at,
            })

        with transaction_scope(self._db, "import donations", entity=self.entity_name, commit=commit):
            self._db.execute(insert(Donation), rows)

        ids = [row["id"] for row in rows]
        by_id = {donation.id: donation for donation in self.find_by_ids(ids)}

        logger.info(
            "Donations imported",
            count=len(rows),
            actor_id=mask_user_id(actor_id),
        )
        return [self._to_output(by_id[donation_id]) for donation_id in ids]

    def delete_by_ids(
        self,
        donation_ids: Sequence[Any] | str,
        *,
        actor_id: uuid.UUID | None = None,
        commit: bool = True,
    ) -> list[DonationOutput]:
        """
        Remove several donations in one transaction.

        Phase one stamps deleted_by on every matching row and flushes;
        phase two deletes them. Any failure rolls back both phases.
        IDs with no matching row are ignored.

        Returns:
            Snapshots of the removed donations as they were just before removal.

        Raises:
            InvalidIdentifierError: If any ID is malformed (nothing is removed).
            TransactionError: If the backend aborts (nothing is removed).
        """
        identifiers = normalize_identifier_list(
            donation_ids,
            delimiter=get_settings().filter_list_delimiter,
            field="id",
        )
        if not identifiers:
            return []

        with transaction_scope(self._db, "delete donations", entity=self.entity_name, commit=commit):
            records = self.find_by_ids(identifiers)

            for record in records:
                record.mark_deleted(actor_id)
            self._db.flush()

            snapshot = [self._to_output(record) for record in records]

            for record in records:
                self._db.delete(record)

        logger.info(
            "Donations deleted",
            requested=len(identifiers),
            deleted=len(snapshot),
            actor_id=mask_user_id(actor_id),
        )
        return snapshot

    def remove(
        self,
        donation_id: Any,
        *,
        actor_id: uuid.UUID | None = None,
        commit: bool = True,
    ) -> DonationOutput:
        """
        Remove one donation: mark deleted_by, commit, then delete and commit.

        Returns:
            Snapshot of the donation as marked, just before removal.

        Raises:
            InvalidIdentifierError: If donation_id is malformed.
            NotFoundError: If the donation does not exist.
        """
        donation_id = normalize_identifier(donation_id, "id")
        donation = self.get_or_raise(donation_id)

        with transaction_scope(self._db, "mark donation deleted", entity=self.entity_name, commit=commit):
            donation.mark_deleted(actor_id)

        snapshot = self._to_output(donation)

        with transaction_scope(self._db, "remove donation", entity=self.entity_name, commit=commit):
            self._db.delete(donation)

        logger.info(
            "Donation deleted",
            donation_id=str(donation_id),
            actor_id=mask_user_id(actor_id),
        )
        return snapshot

    # =========================================================================
    # Queries
    # =========================================================================

    def find_by(
        self,
        where: Mapping[str, Any] | Specification | None = None,
        **criteria: Any,
    ) -> DonationOutput | None:
        """
        Find the first donation matching equality criteria or a specification.

        Usage:
            repo.find_by(id=donation_id)
            repo.find_by({"import_hash": "abc"})
            repo.find_by(ContainsSpec(Donation.item, "rice"))

        Returns:
            The donation with its donor, or None when nothing matches.

        Raises:
            ValidationError: If a criterion names an unknown column.
            InvalidIdentifierError: If an identifier criterion is malformed.
        """
        if isinstance(where, Specification):
            spec = where
        else:
            merged = {**(where or {}), **criteria}
            columns = Donation.__table__.columns.keys()
            nodes: list[Specification] = []
            for name, value in merged.items():
                if name not in columns:
                    raise ValidationError(f"Unknown donation attribute '{name}'", field=name)
                if name in _IDENTIFIER_COLUMNS and value is not None:
                    value = normalize_identifier(value, name)
                nodes.append(EqualsSpec(getattr(Donation, name), value))
            spec = all_of(nodes)

        query = self._base_query().where(spec.to_expression()).order_by(Donation.id).limit(1)
        donation = self._db.scalar(query)
        if donation is None:
            return None
        return self._to_output(donation)

    def find_all(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        page: int | None = None,
        page_size: int | None = None,
        sort_field: str | None = None,
        sort_direction: str | None = None,
        count_only: bool = False,
    ) -> DonationPage:
        """
        Filtered, sorted, paginated search.

        Args:
            filters: Raw filter mapping (see donation_filters). The keys page,
                limit, field and sort are read as fallbacks for the keyword
                arguments below.
            page: Zero-based page number.
            page_size: Rows per page; 0 means no limit.
            sort_field: Sortable column name (camelCase or snake_case).
            sort_direction: "asc" or "desc".
            count_only: Skip loading rows and return only the count.

        Returns:
            DonationPage whose count covers the whole filtered set.
        """
        filters = filters or {}

        page = self._non_negative_int(
            page if page is not None else filters.get("page", Limits.DEFAULT_PAGE), "page"
        )
        page_size = self._non_negative_int(
            page_size if page_size is not None else filters.get("limit", Limits.DEFAULT_PAGE_SIZE),
            "page_size",
        )
        max_page_size = get_settings().max_page_size
        if max_page_size and (page_size == 0 or page_size > max_page_size):
            page_size = max_page_size

        sort_field = sort_field or filters.get("field")
        sort_direction = sort_direction or filters.get("sort")

        spec = compile_donation_filter(filters)
        order_by = self._ordering(sort_field, sort_direction)

        total = self.count(spec)
        if count_only:
            return DonationPage(rows=[], count=total)

        donations = self.find_by_spec(
            spec,
            limit=page_size or None,
            offset=page * page_size,
            order_by=order_by,
        )

        logger.debug(
            "Donations listed",
            page=page,
            page_size=page_size,
            returned=len(donations),
            total=total,
        )
        return DonationPage(
            rows=[self._to_output(donation) for donation in donations],
            count=total,
        )

    def find_all_autocomplete(
        self,
        query: str | None,
        limit: int | None = None,
    ) -> list[AutocompleteOption]:
        """
        Suggest donations for incremental search.

        A non-empty query matches the donation whose id equals it, or any
        donation whose item contains it (case-insensitive). An empty query
        matches everything. Results are ordered by item and never load the donor.
        """
        if not limit:
            limit = get_settings().autocomplete_default_limit
        limit = min(self._non_negative_int(limit, "limit"), Limits.MAX_AUTOCOMPLETE_LIMIT)

        stmt = select(Donation.id, Donation.item)

        term = (query or "").strip()
        if term:
            clauses = [contains_ignore_case(Donation.item, term)]
            if is_identifier(term):
                clauses.insert(0, Donation.id == normalize_identifier(term))
            stmt = stmt.where(or_(*clauses))

        stmt = stmt.order_by(Donation.item.asc(), Donation.id.asc()).limit(limit)

        return [
            AutocompleteOption(id=row.id, label=row.item)
            for row in self._db.execute(stmt)
        ]


def get_donation_repository(db: Session) -> DonationRepository:
    """Factory function for dependency injection."""
    return DonationRepository(db)
