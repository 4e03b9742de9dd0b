from uuid import uuid4

import pytest

from installmod.domain.errors import ValidationError

BUTTON = {"id": "tg", "label": "Join Telegram", "url": "https://t.me/installmod", "icon": "telegram"}


@pytest.fixture
def app_id(ctx, app_category):
    return ctx.content_service.create("app", {"title": "VPN", "category_id": app_category.id}).record.id


def test_default_is_disabled(ctx):
    config = ctx.task_popup_service.get_config()
    assert config.enabled is False
    assert config.buttons == []
    assert ctx.task_popup_service.popup_for(uuid4()) is None


def test_save_then_overwrite(ctx, repo, clock):
    ctx.task_popup_service.save_config({"enabled": True, "buttons": [BUTTON]})
    clock.advance(60)
    saved = ctx.task_popup_service.save_config({"enabled": False, "buttons": []})

    assert saved.updated_at == clock.now_utc()
    assert ctx.task_popup_service.get_config().enabled is False
    assert repo.count("task_popup_config") == 1


def test_popup_for_all_apps(ctx, app_id):
    ctx.task_popup_service.save_config({"enabled": True, "buttons": [BUTTON]})
    popup = ctx.task_popup_service.popup_for(app_id)
    assert popup.buttons[0].label == "Join Telegram"


def test_popup_for_targeted_apps(ctx, app_id):
    ctx.task_popup_service.save_config({"enabled": True, "buttons": [BUTTON], "target_apps": [app_id]})
    assert ctx.task_popup_service.popup_for(app_id) is not None
    assert ctx.task_popup_service.popup_for(uuid4()) is None


def test_enabled_without_buttons_shows_nothing(ctx, app_id):
    ctx.task_popup_service.save_config({"enabled": True})
    assert ctx.task_popup_service.popup_for(app_id) is None


@pytest.mark.parametrize(
    ("data", "code"),
    [
        ({"buttons": [BUTTON, BUTTON]}, "button_duplicate"),
        ({"buttons": [{**BUTTON, "url": "https://"}]}, "button_url_invalid"),
        ({"buttons": [{**BUTTON, "url": "t.me/x"}]}, "button_url_invalid"),
        ({"target_apps": [str(uuid4())]}, "target_app_missing"),
    ],
)
def test_invalid_config_rejected(ctx, repo, data, code):
    with pytest.raises(ValidationError) as exc:
        ctx.task_popup_service.save_config(data)
    assert exc.value.errors[0].code == code
    assert repo.count("task_popup_config") == 0


def test_unknown_icon_rejected(ctx):
    with pytest.raises(ValidationError):
        ctx.task_popup_service.save_config({"buttons": [{**BUTTON, "icon": "myspace"}]})
