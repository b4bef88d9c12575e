from emitters.gateway import (emit_gateway_config, build_dial_peers, render_dial_peers, parse_dial_peers,
                              diff_dial_peers, DialPeer)


RUNNING_CONFIG = """
dial-peer voice 947900 voip
 corlist incoming pbx94
 description 947900 - Mir
 huntstop
 destination-pattern 947900
 voice-class codec 1
 session protocol sipv2
 session target ipv4:10.16.0.103:5060
 session transport udp
 dtmf-relay rtp-nte
 fax rate disable
 fax protocol pass-through g711ulaw
 no vad
!
dial-peer voice 100 pots
 destination-pattern 100
!
"""


def test_dial_peer_block(make_record, settings):
    artifacts = emit_gateway_config([make_record(location="Mir", city_phone="94-79-00", sip_server="10.16.0.103")],
                                    settings)
    assert [a.path for a in artifacts] == ["CiscoConf.txt"]
    assert artifacts[0].content.splitlines() == [
        "",
        "dial-peer voice 947900 voip",
        "corlist incoming pbx94",
        "Description 947900 - Mir",
        "huntstop",
        "destination-pattern 947900",
        "voice-class codec 1",
        "session protocol sipv2",
        "session target ipv4:10.16.0.103:5060",
        "session transport udp",
        "dtmf-relay rtp-nte",
        "fax rate disable",
        "fax protocol pass-through g711ulaw",
        "no vad",
    ]


def test_primary_site_and_inactive_are_excluded(make_record, settings):
    records = [
        make_record("1100", location="Zags", city_phone="24-48-42"),
        make_record("1101", location="Mir", city_phone="94-79-00", is_active=False),
        make_record("1102", location="Mir", city_phone="94-79-01", ring_group="local"),
        make_record("1103", location="Mir", city_phone="94-79-01"),
        make_record("1104", location="Mir", city_phone="1234"),
    ]
    peers = build_dial_peers(records, settings)
    assert [p.id for p in peers] == ["947901"]
    assert peers[0].description == "947901 - Mir"


def test_parse_running_config():
    peers = parse_dial_peers(RUNNING_CONFIG)
    assert [p.id for p in peers] == ["100", "947900"]
    voip = peers[1]
    assert voip.kind == "voip"
    assert voip.corlist_incoming == "pbx94"
    assert voip.description == "947900 - Mir"
    assert voip.huntstop and voip.no_vad
    assert voip.session_target == "ipv4:10.16.0.103:5060"
    assert voip.fax_protocol == "pass-through g711ulaw"
    assert voip.raw_config.startswith("dial-peer voice 947900 voip")


def test_generated_file_parses_back(make_record, settings):
    records = [make_record("1100", location="Mir", city_phone="94-79-00"),
               make_record("1101", location="Kor", city_phone="94-79-02")]
    expected = build_dial_peers(records, settings)
    assert diff_dial_peers(expected, parse_dial_peers(render_dial_peers(expected))).is_empty()


def test_diff_reports_missing_unexpected_and_changed(make_record, settings):
    expected = build_dial_peers(
        [make_record("1100", location="Mir", city_phone="94-79-00", sip_server="10.16.0.104"),
         make_record("1101", location="Mir", city_phone="94-79-05")],
        settings,
    )
    diff = diff_dial_peers(expected, parse_dial_peers(RUNNING_CONFIG))
    assert diff.missing == ["947905"]
    assert diff.unexpected == ["100"]
    assert diff.changed == [("947900", "session_target", "ipv4:10.16.0.104:5060", "ipv4:10.16.0.103:5060")]
    assert diff.lines() == [
        "+ dial-peer voice 947905",
        "- dial-peer voice 100",
        "~ dial-peer voice 947900: session_target 'ipv4:10.16.0.103:5060' -> 'ipv4:10.16.0.104:5060'",
    ]


def test_render_omits_unset_fields():
    assert DialPeer(id="100", kind="pots", destination_pattern="100").render() == [
        "dial-peer voice 100 pots",
        "destination-pattern 100",
    ]


def test_leading_zero_city_number_is_kept(make_record, settings):
    artifacts = emit_gateway_config([make_record(location="Mir", city_phone="01-23-45")], settings)
    lines = artifacts[0].content.splitlines()
    assert "dial-peer voice 012345 voip" in lines
    assert "Description 012345 - Mir" in lines
    assert "destination-pattern 012345" in lines


def test_leading_zero_ids_round_trip(make_record, settings):
    expected = build_dial_peers([make_record("1100", location="Mir", city_phone="01-23-45"),
                                 make_record("1101", location="Mir", city_phone="94-79-00")], settings)
    actual = parse_dial_peers(render_dial_peers(expected))
    assert [p.id for p in actual] == ["012345", "947900"]
    assert diff_dial_peers(expected, actual).is_empty()
