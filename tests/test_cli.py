import draftsnap.__main__ as cli


def test_main_chains_relative_entries(capsys):
    status = cli.main(['0,0', '@10,0', '@10<90', '--log-level', 'ERROR'])

    assert status == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == '0,0 -> 0,0'
    assert lines[1] == '@10,0 -> 10,0'
    assert lines[2] == '@10<90 -> 10,10'


def test_main_direct_distance_uses_angle(capsys):
    status = cli.main(['5', '--base', '1,1', '--angle', '0'])

    assert status == 0
    assert capsys.readouterr().out.strip() == '5 -> 6,1'


def test_main_reports_non_coordinates(capsys, caplog):
    status = cli.main(['LINE', '@1,1'])

    assert status == 1
    assert 'Not a coordinate' in caplog.text
    assert capsys.readouterr().out == ''
