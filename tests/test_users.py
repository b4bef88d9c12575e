from dataclasses import replace

from emitters.users import emit_peer_configs, is_peer_eligible, context_for, LOCAL_ONLY_CONTEXT
from utils.phone import md5_hex


def test_peer_file(make_record, settings):
    artifacts = emit_peer_configs([make_record()], settings)
    assert [a.path for a in artifacts] == ["UsersConf/User1119.conf"]
    lines = artifacts[0].content.splitlines()
    assert lines[0] == "[1119]"
    assert "fullname = Ivanov Ivan" in lines
    assert "Context = DLPN_DialPlan_Zags_244842" in lines
    assert "callgroup = 1" in lines
    assert "pickupgroup = 1" in lines
    assert "vmsecret = 1234" in lines
    assert "email = ivanov@nur.yanao.ru" in lines
    assert f"secret = {md5_hex('11191119')}" in lines
    assert "nat=force_rport,comedia" in lines
    assert "permit = 10.16.1.0/255.255.255.0" in lines
    assert lines[-1] == "directmedia = no"


def test_missing_pickup_group_leaves_placeholders(make_record, settings):
    content = emit_peer_configs([make_record(pickup_group="")], settings)[0].content
    lines = content.splitlines()
    assert ";callgroup = " in lines
    assert ";pickupgroup = " in lines
    assert "callgroup = " not in lines


def test_local_only_context(make_record):
    assert context_for(make_record(ring_group="local")) == LOCAL_ONLY_CONTEXT
    assert context_for(make_record(location="Mir", city_phone="94-79-00")) == "DLPN_DialPlan_Mir_947900"


def test_eligibility(make_record):
    assert is_peer_eligible(make_record())
    assert is_peer_eligible(make_record(is_t27=False, is_mobile_client=True, mac_address=""))
    assert not is_peer_eligible(make_record(is_active=False))
    assert not is_peer_eligible(make_record(location=""))
    assert not is_peer_eligible(make_record(subnet=""))
    assert not is_peer_eligible(make_record(is_t27=False))
    assert not is_peer_eligible(make_record(extra_ring_group="1"))


def test_duplicate_extension_later_record_wins(make_record, settings):
    records = [make_record("1100", full_name="First"), make_record("1100", full_name="Second")]
    artifacts = emit_peer_configs(records, settings)
    assert len(artifacts) == 1
    assert "fullname = Second" in artifacts[0].content.splitlines()


def test_voicemail_secret_comes_from_settings(make_record, settings):
    content = emit_peer_configs([make_record()], replace(settings, voicemail_secret="9999"))[0].content
    assert "vmsecret = 9999" in content.splitlines()
