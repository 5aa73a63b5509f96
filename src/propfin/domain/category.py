"""Category mapping domain service."""

import logging
import re
from collections import Counter, defaultdict
from decimal import Decimal
from typing import Any, Iterable, Optional

from propfin.config import INTERNAL_CATEGORIES, EngineConfig
from propfin.domain.entities import CategoryMapping, Classification, Transaction

logger = logging.getLogger(__name__)


class CategoryMapper:
    """Classifies raw accounting account names into the internal taxonomy."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """Initialize category mapper.

        Args:
            config: Engine configuration holding the rule tables
        """
        self.config = config or EngineConfig()
        self._bank_patterns = tuple(p.lower() for p in self.config.bank_account_patterns)
        self._account_regexes = (
            re.compile(self.config.masked_account_regex),
            re.compile(self.config.sub_account_regex),
        )
        self._rules = tuple(
            (pattern.lower(), standard) for pattern, standard in self.config.category_rules
        )
        self._cache: dict[tuple[str, str, str], Classification] = {}

    def is_bank_or_personal_account(self, name: Optional[str]) -> bool:
        """Check whether an account is a bank, card or personal account.

        Args:
            name: Raw account name

        Returns:
            True if the account must be kept out of category aggregation
        """
        if not name:
            return False
        name = name.strip()
        lowered = name.lower()
        if any(pattern in lowered for pattern in self._bank_patterns):
            return True
        return any(regex.search(name) for regex in self._account_regexes)

    def match_standard_category(self, text: Optional[str]) -> Optional[str]:
        """Return the first standard category whose pattern occurs in text."""
        if not text:
            return None
        lowered = text.strip().lower()
        for pattern, standard in self._rules:
            if pattern in lowered:
                return standard
        return None

    def classify(
        self,
        raw_account_name: Optional[str],
        vendor: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Classification:
        """Classify a raw account name.

        The account name is matched first, then the vendor, then the
        description. Bank and personal accounts are never given a category.

        Args:
            raw_account_name: Account or category name as reported by the source
            vendor: Optional vendor name for additional context
            description: Optional transaction description for additional context

        Returns:
            Classification with internal_category None when unmapped or excluded
        """
        key = ((raw_account_name or "").strip(), vendor or "", description or "")
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if self.is_bank_or_personal_account(raw_account_name):
            result = Classification(
                internal_category=None,
                standard_category=None,
                is_bank_or_personal_account=True,
            )
        else:
            standard = None
            for text in (raw_account_name, vendor, description):
                standard = self.match_standard_category(text)
                if standard is not None:
                    break
            result = Classification(
                internal_category=self.config.taxonomy.get(standard) if standard else None,
                standard_category=standard,
            )

        self._cache[key] = result
        return result

    def classify_transaction(self, txn: Transaction) -> Classification:
        return self.classify(txn.raw_category, txn.vendor, txn.description)

    def build_mapping(self, transactions: Iterable[Transaction]) -> list[CategoryMapping]:
        """Group transactions by raw account and report how each one maps.

        Every transaction is classified with its vendor and description, the
        same way the category report does, so one account can map to several
        internal categories or be partly unmapped. Grouping uses the trimmed
        raw account name and is case-sensitive.

        Args:
            transactions: Transactions to inspect

        Returns:
            CategoryMapping list sorted by account name. internal_category is
            the category most of the account's mapped transactions land in.
        """
        totals: dict[str, dict[str, Any]] = defaultdict(
            lambda: {
                "count": 0,
                "amount": Decimal("0"),
                "categories": Counter(),
                "unmapped": 0,
                "excluded": False,
            }
        )
        for txn in transactions:
            account = (txn.raw_category or "").strip()
            group = totals[account]
            group["count"] += 1
            group["amount"] += txn.amount

            classification = self.classify_transaction(txn)
            if classification.is_bank_or_personal_account:
                group["excluded"] = True
            elif classification.internal_category is None:
                group["unmapped"] += 1
            else:
                group["categories"][classification.internal_category] += 1

        mappings = []
        for account in sorted(totals):
            group = totals[account]
            categories: Counter = group["categories"]
            ranked = sorted(categories, key=lambda name: (-categories[name], name))
            mapping = CategoryMapping(
                qb_category=account,
                internal_category=ranked[0] if ranked else None,
                transaction_count=group["count"],
                total_amount=group["amount"],
                excluded=group["excluded"],
                categories=tuple(sorted(categories)),
                unmapped_count=group["unmapped"],
            )
            if mapping.is_mixed:
                logger.info(
                    "Account '%s' maps to more than one row: %s%s",
                    account,
                    ", ".join(mapping.categories),
                    " and unmapped" if mapping.unmapped_count else "",
                )
            mappings.append(mapping)
        return mappings

    def unmapped_accounts(self, transactions: Iterable[Transaction]) -> list[str]:
        """Return raw account names that match no rule.

        Bank and personal accounts are not reported here; they are excluded,
        not unmapped.
        """
        unmapped = set()
        for txn in transactions:
            classification = self.classify_transaction(txn)
            if (
                classification.internal_category is None
                and not classification.is_bank_or_personal_account
            ):
                unmapped.add((txn.raw_category or "").strip())

        if unmapped:
            logger.info("Unmapped accounts: %s", ", ".join(sorted(unmapped)))
        return sorted(unmapped)

    def validate_rules(self) -> dict[str, Any]:
        """Check the rule table against the taxonomy.

        Returns:
            Dict with:
            - valid: True if every rule target maps into the internal taxonomy
            - total_patterns: number of patterns
            - standard_categories: standard categories referenced by rules
            - standard_without_taxonomy: rule targets missing from the taxonomy
            - unknown_internal: taxonomy targets outside the internal taxonomy
            - internal_without_rules: internal categories nothing maps to
        """
        standards = sorted({standard for _, standard in self._rules})
        missing = [s for s in standards if s not in self.config.taxonomy]
        unknown = sorted(
            {t for t in self.config.taxonomy.values() if t not in INTERNAL_CATEGORIES}
        )
        reachable = {self.config.taxonomy[s] for s in standards if s in self.config.taxonomy}
        uncovered = [c for c in INTERNAL_CATEGORIES if c not in reachable]

        return {
            "valid": not missing and not unknown,
            "total_patterns": len(self._rules),
            "standard_categories": standards,
            "standard_without_taxonomy": missing,
            "unknown_internal": unknown,
            "internal_without_rules": uncovered,
        }
