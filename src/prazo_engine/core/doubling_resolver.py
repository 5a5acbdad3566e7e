"""
Doubling Resolver
Decides whether a deadline runs in double (arts. 180, 183, 186 and 229 CPC)
"""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .models import DeadlineCatalogEntry, Party, PartyType, Pole

logger = logging.getLogger(__name__)

# Legal basis of the statutory doubled term per party type (None: no privilege)
STATUTORY_DOUBLING: Dict[PartyType, Optional[str]] = {
    PartyType.INDIVIDUAL: None,
    PartyType.LEGAL_ENTITY: None,
    PartyType.FEDERAL_TREASURY: "Art. 183 CPC (Fazenda Pública)",
    PartyType.STATE_TREASURY: "Art. 183 CPC (Fazenda Pública)",
    PartyType.MUNICIPAL_TREASURY: "Art. 183 CPC (Fazenda Pública)",
    PartyType.AUTONOMOUS_AGENCY: "Art. 183 CPC (autarquia)",
    PartyType.PUBLIC_FOUNDATION: "Art. 183 CPC (fundação pública)",
    PartyType.PUBLIC_MINISTRY: "Art. 180 CPC (Ministério Público)",
    PartyType.PUBLIC_DEFENDER: "Art. 186 CPC (Defensoria Pública)",
    PartyType.PUBLIC_COMPANY: None,
    PartyType.MIXED_ECONOMY_COMPANY: None,
}

JOINDER_BASIS = "Art. 229 CPC (litisconsortes com procuradores distintos)"


class DoublingResolver:
    """Resolves the effective day count from party composition"""

    def statutory_reasons(self, parties: Sequence[Party]) -> List[str]:
        reasons = []
        for party in parties:
            basis = STATUTORY_DOUBLING[party.party_type]
            if basis and basis not in reasons:
                reasons.append(basis)
        return reasons

    def joinder_poles(self, parties: Sequence[Party]) -> List[Pole]:
        """Poles with two or more parties represented by distinct counsel"""

        counsel_by_pole: Dict[Pole, Set[str]] = defaultdict(set)
        for party in parties:
            if party.counsel_id:
                counsel_by_pole[party.pole].add(party.counsel_id)

        return [pole for pole in Pole if len(counsel_by_pole.get(pole, ())) >= 2]

    def resolve_effective_days(self,
                               base_days: int,
                               catalog_entry: DeadlineCatalogEntry,
                               parties: Sequence[Party],
                               electronic_process: bool = False) -> Tuple[int, bool, Optional[str]]:
        """
        Resolve the effective day count

        Args:
            base_days: Day count before doubling
            catalog_entry: Deadline definition
            parties: Parties in the case
            electronic_process: Fully electronic records (disables joinder doubling)

        Returns:
            (effective_days, applied, reason)
        """

        if not catalog_entry.doubling_eligible:
            return base_days, False, None

        reasons = self.statutory_reasons(parties)

        if catalog_entry.joinder_eligible and not electronic_process:
            poles = self.joinder_poles(parties)
            if poles:
                reasons.append(f"{JOINDER_BASIS}: {', '.join(p.value for p in poles)}")

        if not reasons:
            return base_days, False, None

        # Boolean doubling: both conditions together still double once
        reason = "; ".join(reasons)
        logger.debug(f"{catalog_entry.code}: doubling {base_days} -> {base_days * 2} ({reason})")
        return base_days * 2, True, reason

    def resolve_parties(self,
                        catalog_entry: DeadlineCatalogEntry,
                        parties: Sequence[Party],
                        electronic_process: bool = False) -> List[Party]:
        """Return the parties with entitled_to_double resolved"""

        joined: Set[Pole] = set()
        if catalog_entry.doubling_eligible and catalog_entry.joinder_eligible and not electronic_process:
            joined = set(self.joinder_poles(parties))

        resolved = []
        for party in parties:
            entitled = catalog_entry.doubling_eligible and (
                STATUTORY_DOUBLING[party.party_type] is not None
                or (party.pole in joined and party.counsel_id is not None)
            )
            resolved.append(replace(party, entitled_to_double=entitled))
        return resolved
