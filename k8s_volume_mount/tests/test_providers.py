import json

import pytest

from k8s_volume_mount.errors import ValidationError
from k8s_volume_mount.providers import (
    get_provider,
    ProviderType,
    render_manifest,
)


def test_webdav_command(make_session):
    session = make_session("webdav")
    command = get_provider("webdav").command(session)

    assert command == [
        "rclone",
        "serve",
        "webdav",
        "/data",
        "--addr",
        ":8090",
        "--user",
        session.mount_username,
        "--pass",
        session.decoded_password(),
    ]


def test_sftp_command(make_session):
    session = make_session("sftp")
    command = get_provider("sftp").command(session)

    assert command == [
        "rclone",
        "serve",
        "sftp",
        f"--user={session.mount_username}",
        f"--pass={session.decoded_password()}",
        "/data",
        "--addr",
        ":8090",
    ]


def test_nfs_command(make_session):
    session = make_session("nfs")
    command = get_provider("nfs").command(session)

    assert command == [
        "rclone",
        "serve",
        "nfs",
        "--vfs-cache-mode=full",
        "/data",
        "--addr",
        ":8090",
    ]


def test_every_provider_type_has_a_provider():
    for provider_type in ProviderType:
        assert get_provider(provider_type.value).type == provider_type


def test_unknown_provider():
    with pytest.raises(ValidationError) as e:
        get_provider("smb")

    assert "could not create provider for provider type: smb" in str(e.value)


def test_render_manifest(make_session):
    session = make_session("webdav", "data", 10000, "team")
    provider = get_provider("webdav")

    manifest = render_manifest(provider, session)

    assert "kind: Deployment" in manifest
    assert "kind: Service" in manifest
    assert manifest.count("name: webdav-data-10000\n  namespace: team") == 2
    assert "app: webdav-data-10000" in manifest
    assert "claimName: data" in manifest
    assert "containerPort: 8090" in manifest
    assert f"command: {json.dumps(provider.command(session))}" in manifest


def test_render_manifest_without_namespace(make_session):
    session = make_session("nfs")

    manifest = render_manifest(get_provider("nfs"), session)

    assert "namespace:" not in manifest
    assert "name: nfs-data-10000\n" in manifest
