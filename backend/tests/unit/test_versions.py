from tiller_installer.services.versions import image_version, is_newer_version


def test_image_version_uses_text_after_last_colon():
    assert image_version("registry.local:5000/tiller:v2.16.12") == "v2.16.12"
    assert image_version("gcr.io/kubernetes-helm/tiller") is None


def test_newer_tag_is_newer():
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:1.0.0", "gcr.io/kubernetes-helm/tiller:1.1.0") is True


def test_older_or_equal_tag_is_not_newer():
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:2.0.0", "gcr.io/kubernetes-helm/tiller:1.9.0") is False
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:v2.0.0", "other.io/tiller:2.0.0") is False


def test_reference_without_tag_counts_as_newer():
    assert is_newer_version("gcr.io/kubernetes-helm/tiller", "gcr.io/kubernetes-helm/tiller:1.0.0") is True
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:9.9.9", "gcr.io/kubernetes-helm/tiller") is True


def test_unparseable_tag_counts_as_newer():
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:latest", "gcr.io/kubernetes-helm/tiller:1.0.0") is True
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:2.0.0", "gcr.io/kubernetes-helm/tiller:canary") is True


def test_prerelease_existing_tag_is_not_replaced_by_older_release():
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:2.0.0-beta.x", "gcr.io/kubernetes-helm/tiller:1.0.0") is False
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:2.0.0-rc.1", "gcr.io/kubernetes-helm/tiller:2.0.0") is True


def test_build_metadata_does_not_make_a_version_newer():
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:2.0.0", "gcr.io/kubernetes-helm/tiller:2.0.0+build5") is False


def test_short_tags_are_compared_as_versions():
    assert is_newer_version("gcr.io/kubernetes-helm/tiller:v2.16", "gcr.io/kubernetes-helm/tiller:v2.16.1") is True
