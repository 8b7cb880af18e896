import logging


BUZZER = '/buzzer'
GAME = '/game'
MASTER = '/master'


def payloads(packets, name):
    return [pkt['args'][0] if pkt['args'] else None for pkt in packets if pkt['name'] == name]


def received(sio_client, namespace, name):
    """Drain the client's queue and keep one event; fetch packets once to check several."""
    return payloads(sio_client.get_received(namespace), name)


def connect_actors(sio_factory, controllers=4):
    buzzer = sio_factory(BUZZER)
    display = sio_factory(GAME)
    master = sio_factory(MASTER)
    buzzer.emit('register', {'controllers': controllers}, namespace=BUZZER)
    display.emit('register', {}, namespace=GAME)
    master.emit('register', {}, namespace=MASTER)
    return buzzer, display, master


def command(master, name, data=None):
    return master.emit(name, data or {}, namespace=MASTER, callback=True)


def test_clients_are_greeted(sio_factory):
    display = sio_factory(GAME)
    assert display.is_connected(GAME)
    assert received(display, GAME, 'connected')


def test_session_starts_when_everyone_registers(sio_factory):
    buzzer, display, master = connect_actors(sio_factory)
    assert received(master, MASTER, 'step') == [{'step': 'mode'}]
    assert received(display, GAME, 'step') == [{'step': 'mode'}]
    # Every indicator is switched off on registration
    assert len(received(buzzer, BUZZER, 'light_off')) == 4


def test_full_session_over_sockets(sio_factory, client):
    buzzer, display, master = connect_actors(sio_factory)

    assert command(master, 'set_mode', {'mode': 'normal'}) == {'command': 'set_mode', 'applied': True}
    conditions = received(master, MASTER, 'condition')
    assert conditions[-1]['code'] == 'questions-loaded'
    assert conditions[-1]['count'] == 3

    assert command(master, 'set_activation_step')['applied'] is True
    buzzer.get_received(BUZZER)
    buzzer.emit('press', {'controller': 0}, namespace=BUZZER)
    buzzer.emit('press', {'controller': 1}, namespace=BUZZER)
    assert received(buzzer, BUZZER, 'light_on') == [{'controller': 0}, {'controller': 1}]
    activated = received(display, GAME, 'activate_team')
    assert [a['team']['id'] for a in activated] == ['a', 'b']

    assert command(master, 'start_quiz')['applied'] is True
    assert command(master, 'start_question', {'index': 0})['applied'] is True
    display.get_received(GAME)

    buzzer.emit('press', {'controller': 2}, namespace=BUZZER)
    assert received(display, GAME, 'answered') == [{'controller': 2, 'answered': True}]

    assert command(master, 'validate_answer', {'success': True, 'points': 10})['applied'] is True
    result = received(display, GAME, 'validate_answer')[-1]
    assert result['team_id'] == 'c'
    assert result['team_index'] == 2

    state = client.get('/api/game/state').get_json()
    assert {t['id']: t['points'] for t in state['teams']}['c'] == 10
    assert state['answers']['0']['c'] == 'correct'

    assert command(master, 'finish_game')['applied'] is True
    assert received(display, GAME, 'finish_game') == [{}]
    assert client.get('/api/game/state').get_json()['step'] == 'scores'


def test_rejected_command_is_reported_to_control(sio_factory):
    _, display, master = connect_actors(sio_factory)
    master.get_received(MASTER)

    assert command(master, 'start_quiz') == {'command': 'start_quiz', 'applied': False}
    rejected = received(master, MASTER, 'command_rejected')
    assert rejected == [{
        'command': 'start_quiz',
        'code': 'wrong-step',
        'message': 'Step is mode, expected teams-activation',
    }]
    assert received(display, GAME, 'command_rejected') == []


def test_commands_need_a_registered_control_screen(sio_factory):
    master = sio_factory(MASTER)
    assert not command(master, 'start_quiz')
    errors = received(master, MASTER, 'error')
    assert errors[-1]['command'] == 'start_quiz'


def test_buzzer_register_validates_controller_count(sio_factory, flask_app):
    buzzer = sio_factory(BUZZER)
    buzzer.emit('register', {'controllers': 0}, namespace=BUZZER)
    assert received(buzzer, BUZZER, 'error')
    assert flask_app.extensions['buzzquiz'].hardware.sid is None


def test_press_from_unregistered_client_is_refused(sio_factory):
    connect_actors(sio_factory)
    intruder = sio_factory(BUZZER)
    intruder.emit('press', {'controller': 0}, namespace=BUZZER)
    assert received(intruder, BUZZER, 'error') == [{'message': 'buzzer is not registered'}]


def test_duplicate_activation_press_is_rejected_on_the_buzzer(sio_factory):
    buzzer, _, master = connect_actors(sio_factory)
    command(master, 'set_mode', {'mode': 'normal'})
    command(master, 'set_activation_step')
    buzzer.emit('press', {'controller': 3}, namespace=BUZZER)
    buzzer.emit('press', {'controller': 3}, namespace=BUZZER)
    rejected = received(buzzer, BUZZER, 'press_rejected')
    assert [(r['controller'], r['code']) for r in rejected] == [(3, 'already-active')]


def test_screen_reconnect_gets_a_resync(sio_factory, client):
    _, display, master = connect_actors(sio_factory)
    command(master, 'set_team_name', {'id': 'b', 'name': 'Badgers'})

    display.disconnect(namespace=GAME)
    state = client.get('/api/game/state').get_json()
    assert state['actors']['game'] is False
    assert state['started'] is True

    display = sio_factory(GAME)
    display.emit('register', {}, namespace=GAME)
    packets = display.get_received(GAME)
    assert payloads(packets, 'step') == [{'step': 'mode'}]
    teams = payloads(packets, 'teams')[-1]['teams']
    assert teams[1]['name'] == 'Badgers'
    assert all(not t['lit'] for t in teams)
    assert payloads(packets, 'actors')[-1] == {'buzzer': True, 'game': True, 'master': True}


def test_second_display_tab_keeps_screen_present(sio_factory, client):
    _, display, _ = connect_actors(sio_factory)
    second = sio_factory(GAME)
    second.emit('register', {}, namespace=GAME)

    display.disconnect(namespace=GAME)
    assert client.get('/').get_json()['actors']['game'] is True


def test_refused_frames_are_logged_on_the_app_logger(sio_factory, caplog):
    connect_actors(sio_factory)
    intruder = sio_factory(BUZZER)
    intruder.emit('press', {'controller': 0}, namespace=BUZZER)
    stranger = sio_factory(MASTER)
    command(stranger, 'start_quiz')

    app_records = [r.getMessage() for r in caplog.records if r.name == 'buzzquiz']
    assert any(m.startswith('[press-unregistered]') for m in app_records)
    assert any(m.startswith('[command-unregistered] command=start_quiz') for m in app_records)


def test_game_logs_flow_through_the_app_logger(flask_app, sio_factory, caplog):
    caplog.set_level(logging.INFO, logger=flask_app.logger.name)
    _, _, master = connect_actors(sio_factory)
    command(master, 'start_quiz')

    rejected = [r for r in caplog.records if r.getMessage().startswith('[rejected] command=start_quiz')]
    assert rejected
    # Component loggers are children of the application logger
    assert rejected[0].name.startswith(flask_app.logger.name + '.')
