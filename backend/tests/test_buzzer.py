from buzzquiz.models import AnswerState


def test_first_press_wins(quiz_game, buzzer, display):
    quiz_game.start_question(0)
    display.clear()
    buzzer.press(1)

    assert quiz_game.pending == 1
    assert buzzer.lights[1] is True
    team = display.events('update_team')[-1][0]
    assert team['id'] == 'b'
    assert team['lit'] is True
    assert team['flash'] is True
    assert display.events('set_answered') == [(1, True)]
    # flash is a one-shot cue
    assert quiz_game.teams.get('b').flash is False


def test_other_presses_are_dropped_while_pending(quiz_game, buzzer):
    quiz_game.start_question(0)
    buzzer.press(1)
    buzzer.press(0)
    buzzer.press(1)
    assert quiz_game.pending == 1
    assert buzzer.rejected == [(0, 'validation-pending'), (1, 'validation-pending')]


def test_press_without_running_question_is_rejected(quiz_game, buzzer):
    buzzer.press(0)
    assert quiz_game.pending is None
    assert buzzer.rejected == [(0, 'no-active-question')]


def test_team_cannot_answer_twice(quiz_game, buzzer):
    quiz_game.start_question(0)
    buzzer.press(0)
    quiz_game.validate_answer({'success': False, 'points': 0})
    buzzer.press(0)
    assert quiz_game.pending is None
    assert buzzer.rejected[-1] == (0, 'already-answered')

    buzzer.press(1)
    assert quiz_game.pending == 1


def test_inactive_controller_may_still_buzz(quiz_game, buzzer):
    quiz_game.start_question(0)
    buzzer.press(2)
    assert quiz_game.pending == 2
    assert not quiz_game.teams.get('c').active


def test_answer_record_starts_unanswered_for_every_team(quiz_game):
    quiz_game.start_question(2)
    record = quiz_game.answers(2)
    assert len(record) == 4
    assert all(record[tid] is AnswerState.UNANSWERED for tid in 'abcd')


def test_presses_stop_after_finish(quiz_game, buzzer):
    quiz_game.start_question(0)
    quiz_game.finish_game()
    buzzer.press(0)
    assert quiz_game.pending is None
    assert buzzer.rejected == []
    assert buzzer.handlers == []


def test_pending_light_is_turned_off_when_question_changes(quiz_game, buzzer, display):
    quiz_game.start_question(0)
    buzzer.press(3)
    assert quiz_game.next_question()
    assert quiz_game.pending is None
    assert buzzer.lights[3] is False
    assert display.events('update_team')[-1][0]['lit'] is False
    assert quiz_game.answers(0)['d'] is AnswerState.UNANSWERED
