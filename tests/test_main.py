"""End-to-end tests for the harvest and the command-line entry point."""

import json

import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

import main
from fakes import FakeYouTube, make_http_error, page, playlist_item, snippet, thread
from models import Reply


def uploads_response(uploads):
    return {'items': [{'contentDetails': {'relatedPlaylists': {'uploads': uploads}}}]}


def two_video_channel(channels=None):
    return FakeYouTube(
        channels=channels,
        playlist_items=[page([playlist_item('A', 'Video A')], 'next'), page([playlist_item('B', 'Video B')])],
        comment_threads={
            'A': [page([thread('ta', 'on A', 'u1', total_reply_count=2,
                               inline=[snippet('a1', 'x'), snippet('a2', 'y')])])],
            'B': [page([thread('tb', 'on B', 'u2', total_reply_count=5, inline=[snippet('b1', 'x')])])],
        },
        comments={'tb': [
            page([snippet('b1', 'x'), snippet('b2', 'y')], 'r2'),
            page([snippet('b3', 'z'), snippet('b4', 'x'), snippet('b5', 'y')]),
        ]},
    )


def test_harvest_two_videos():
    youtube = two_video_channel()

    export = main.harvest(youtube, 'UU1', progress=False)

    assert [(v.id, v.title) for v in export] == [('A', 'Video A'), ('B', 'Video B')]
    assert [len(v.comments) for v in export] == [1, 1]
    assert export[0].comments[0].children == [Reply('a1', 'x'), Reply('a2', 'y')]
    assert len(export[1].comments[0].children) == 5
    assert [c['parentId'] for c in youtube.comments_resource.calls] == ['tb', 'tb']


def test_harvest_with_comments_disabled():
    youtube = FakeYouTube(
        playlist_items=[page([playlist_item('A', 'Video A')])],
        comment_threads={'A': [make_http_error(403)]},
    )

    export = main.harvest(youtube, 'UU1', progress=False)

    assert len(export) == 1
    assert export[0].id == 'A'
    assert export[0].comments == []


def test_harvest_aborts_on_other_error():
    youtube = FakeYouTube(
        playlist_items=[page([playlist_item('A', 'Video A'), playlist_item('B', 'Video B')])],
        comment_threads={'A': [make_http_error(400)], 'B': [page([])]},
    )

    with pytest.raises(main.CommentFetchError):
        main.harvest(youtube, 'UU1', progress=False)
    assert [c['videoId'] for c in youtube.comment_threads.calls] == ['A']


def test_write_export(tmp_path):
    youtube = two_video_channel()
    export = main.harvest(youtube, 'UU1', progress=False)
    output = tmp_path / 'out' / 'comments.json'

    main.write_export(export, str(output))

    data = json.loads(output.read_text(encoding='utf-8'))
    assert data[0] == {
        'title': 'Video A',
        'id': 'A',
        'comments': [{
            'text': 'on A',
            'author_name': 'u1',
            'children': [{'text': 'a1', 'author_name': 'x'}, {'text': 'a2', 'author_name': 'y'}],
        }],
    }
    assert len(data[1]['comments'][0]['children']) == 5


def test_parse_args_defaults(monkeypatch):
    monkeypatch.delenv('YOUTUBE_API_KEY', raising=False)
    monkeypatch.delenv('HANDLE_LOOKUP_URL', raising=False)

    args = main.parse_args(['@chan'])

    assert args.channel_handle == '@chan'
    assert args.token_cache_name == 'tokencache.json'
    assert args.client_secret_name == 'client_secret.json'
    assert args.output_name == 'comments.json'
    assert args.api_key is None
    assert args.lookup_url == main.DEFAULT_LOOKUP_URL


@pytest.fixture
def patched_main(monkeypatch):
    def install(youtube, channel_id='UCxxxxxxxxxxxxxxxxxxxxxx'):
        monkeypatch.setattr(main, 'load_dotenv', lambda: None)
        monkeypatch.setattr(main, 'build_client', lambda args: youtube)
        monkeypatch.setattr(main, 'resolve_channel_id', lambda handle, url: channel_id)
    return install


def test_main_writes_output(tmp_path, patched_main):
    youtube = two_video_channel(channels=[uploads_response('UU1')])
    patched_main(youtube)
    output = tmp_path / 'comments.json'

    assert main.main(['@chan', 'tok.json', 'secret.json', str(output), '--no-progress']) == 0
    assert len(json.loads(output.read_text(encoding='utf-8'))) == 2


def test_main_fatal_error_writes_nothing(tmp_path, patched_main):
    youtube = FakeYouTube(
        playlist_items=[page([playlist_item('A', 'Video A')])],
        comment_threads={'A': [make_http_error(500)]},
        channels=[uploads_response('UU1')],
    )
    patched_main(youtube)
    output = tmp_path / 'comments.json'

    assert main.main(['@chan', 'tok.json', 'secret.json', str(output), '--no-progress']) == 1
    assert not output.exists()


def test_main_missing_client_secret(tmp_path, monkeypatch):
    monkeypatch.setattr(main, 'load_dotenv', lambda: None)
    monkeypatch.delenv('YOUTUBE_API_KEY', raising=False)
    output = tmp_path / 'comments.json'

    code = main.main(['@chan', str(tmp_path / 'tok.json'), str(tmp_path / 'missing.json'), str(output)])

    assert code == 1
    assert not output.exists()


def run_with_oauth_files(tmp_path, monkeypatch, secret=None, token=None):
    monkeypatch.setattr(main, 'load_dotenv', lambda: None)
    monkeypatch.delenv('YOUTUBE_API_KEY', raising=False)
    secret_file = tmp_path / 'secret.json'
    token_file = tmp_path / 'tok.json'
    if secret is not None:
        secret_file.write_text(secret, encoding='utf-8')
    if token is not None:
        token_file.write_text(token, encoding='utf-8')
    output = tmp_path / 'comments.json'

    code = main.main(['@chan', str(token_file), str(secret_file), str(output)])

    assert not output.exists()
    return code


def test_main_client_secret_not_installed_app(tmp_path, monkeypatch):
    assert run_with_oauth_files(tmp_path, monkeypatch, secret='{"not_installed": {}}') == 1


def test_main_corrupt_token_cache(tmp_path, monkeypatch):
    assert run_with_oauth_files(tmp_path, monkeypatch, token='garbage') == 1


def test_main_revoked_refresh_token(tmp_path, monkeypatch):
    def refuse(self, request):
        raise RefreshError('invalid_grant: Token has been expired or revoked.')

    monkeypatch.setattr(Credentials, 'refresh', refuse)
    token = json.dumps({
        'token': 'old',
        'refresh_token': 'revoked',
        'client_id': 'id.apps.googleusercontent.com',
        'client_secret': 'secret',
        'expiry': '2000-01-01T00:00:00Z',
    })

    assert run_with_oauth_files(tmp_path, monkeypatch, token=token) == 1
