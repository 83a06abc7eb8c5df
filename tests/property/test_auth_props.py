from hypothesis import assume, given
from hypothesis import strategies as st

from radius_vlan.auth.engine import authenticate, password_digest
from radius_vlan.config.settings import IdentityKind, UserEntry
from tests.unit.radius_stubs import make_settings

passwords = st.text(min_size=0, max_size=64)


def _directory(password: str, vlan: int = 10):
    return make_settings(
        users={
            "user": UserEntry(
                IdentityKind.PASSWORD_HASH,
                password_digest(password),
                vlan_enabled=True,
                vlan=vlan,
            )
        }
    )


@given(password=passwords, vlan=st.integers(min_value=1, max_value=4094))
def test_configured_password_always_accepted(password, vlan):
    outcome = authenticate(_directory(password, vlan), "user", password)
    assert outcome.authenticated
    assert outcome.vlan == vlan


@given(password=passwords, other=passwords)
def test_any_other_password_rejected(password, other):
    assume(password != other)
    assert not authenticate(_directory(password), "user", other).authenticated


@given(
    password=st.text(min_size=1, max_size=32, alphabet=st.characters(max_codepoint=127)),
    index=st.integers(min_value=0),
    bit=st.integers(min_value=0, max_value=6),
)
def test_single_bit_flip_rejected(password, index, bit):
    i = index % len(password)
    flipped = password[:i] + chr(ord(password[i]) ^ (1 << bit)) + password[i + 1 :]
    assert not authenticate(_directory(password), "user", flipped).authenticated


@given(mac=st.from_regex(r"[0-9a-f]{2}(:[0-9a-f]{2}){5}", fullmatch=True))
def test_mac_identity_is_its_own_password(mac):
    settings = make_settings(
        users={mac: UserEntry(IdentityKind.MAC_ADDRESS, mac, vlan_enabled=True, vlan=30)}
    )
    assert authenticate(settings, mac, mac).vlan == 30
    assert not authenticate(settings, mac, mac + "0").authenticated
