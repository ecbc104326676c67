# havendrip/repositories/profiles.py
from __future__ import annotations

from typing import Optional

from google.cloud import firestore as gcf

from havendrip.core.results import RemoteResult
from havendrip.repositories.firestore import FirestoreAdapter, snapshot_dict
from havendrip.schemas.profile import Profile

USER_PROFILES = "user_profiles"


class FirestoreProfileStore(FirestoreAdapter):

    def get_profile(self, user_id: str) -> RemoteResult[Optional[Profile]]:
        def run():
            data = snapshot_dict(self._col(USER_PROFILES).document(user_id).get(**self._read_opts()))
            if not data:
                return None
            fields = {k: (str(v) if v is not None else None) for k, v in data.items() if k in Profile.model_fields}
            fields["user_id"] = user_id
            return Profile(**fields)
        return self._guard("get_profile", run)

    def update_phone_number(self, user_id: str, phone_number: str) -> RemoteResult[None]:
        def run():
            self._col(USER_PROFILES).document(user_id).set(
                {"phone_number": phone_number, "updated_at": gcf.SERVER_TIMESTAMP},
                merge=True,
                **self._write_opts(),
            )
        return self._guard("update_phone_number", run)
