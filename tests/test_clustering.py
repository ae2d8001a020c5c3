import numpy as np
import pytest
from minins.clustering import KmeansClusterer, kmeans, mixture_bic
from minins.config import ConfigurationError
from minins.metric import ManhattanMetric
from utils import get_rstate


def two_blobs(rstate, npoints=100, sep=10.):
    pts = rstate.normal(size=(2 * npoints, 2))
    pts[npoints:, 0] += sep
    return pts


def test_two_blobs():
    # two well separated groups are recovered nearly every time
    rstate = get_rstate()
    clusterer = KmeansClusterer(min_nclusters=1, max_nclusters=6)
    nfound = 0
    nrep = 100
    for i in range(nrep):
        pts = two_blobs(rstate)
        labels, nclusters = clusterer.partition(pts, rstate=rstate)
        if nclusters == 2:
            nfound += 1
            # each group ends up in one cluster
            assert len(set(labels[:100])) == 1
            assert len(set(labels[100:])) == 1
    assert nfound >= 95


def test_single_blob():
    rstate = get_rstate()
    clusterer = KmeansClusterer(max_nclusters=4)
    nsingle = 0
    nrep = 50
    for i in range(nrep):
        pts = rstate.normal(size=(200, 2))
        labels, nclusters = clusterer.partition(pts, rstate=rstate)
        nsingle += nclusters == 1
    assert nsingle >= 45


def test_labels_consecutive():
    rstate = get_rstate()
    pts = np.concatenate([
        rstate.normal(size=(50, 3)) + c
        for c in [np.zeros(3), np.ones(3) * 20, -np.ones(3) * 20]
    ])
    labels, nclusters = KmeansClusterer().partition(pts, rstate=rstate)
    assert nclusters == 3
    assert labels.dtype.kind == 'i'
    assert sorted(set(labels)) == list(range(nclusters))


def test_manhattan():
    rstate = get_rstate()
    clusterer = KmeansClusterer(metric=ManhattanMetric())
    labels, nclusters = clusterer.partition(two_blobs(rstate), rstate=rstate)
    assert nclusters == 2


def test_min_nclusters_forced():
    rstate = get_rstate()
    pts = rstate.normal(size=(100, 2))
    labels, nclusters = KmeansClusterer(min_nclusters=3,
                                        max_nclusters=3).partition(
                                            pts, rstate=rstate)
    assert nclusters == 3
    assert len(set(labels)) == 3


def test_too_few_points():
    rstate = get_rstate()
    pts = rstate.normal(size=(2, 2))
    labels, nclusters = KmeansClusterer(min_nclusters=3,
                                        max_nclusters=5).partition(
                                            pts, rstate=rstate)
    assert nclusters == 1
    assert np.all(labels == 0)


def test_identical_points():
    # all trials are degenerate, fall back to a single cluster
    rstate = get_rstate()
    pts = np.ones((20, 2))
    labels, nclusters = KmeansClusterer(min_nclusters=2,
                                        max_nclusters=4).partition(
                                            pts, rstate=rstate)
    assert nclusters == 1
    assert np.all(labels == 0)


def test_kmeans():
    rstate = get_rstate()
    pts = two_blobs(rstate)
    labels, centers, inertia = kmeans(pts, 2, rstate=rstate)
    assert np.allclose(np.sort(centers[:, 0]), [0, 10], atol=0.5)
    assert inertia > 0
    assert kmeans(pts[:3], 4, rstate=rstate) is None


def test_bic_prefers_truth():
    rstate = get_rstate()
    pts = two_blobs(rstate)
    truth = np.repeat([0, 1], 100)
    centers = np.array([pts[truth == k].mean(axis=0) for k in range(2)])
    bic2 = mixture_bic(pts, truth, centers)
    bic1 = mixture_bic(pts, np.zeros(200, dtype=int),
                       pts.mean(axis=0)[None, :])
    assert bic2 < bic1


@pytest.mark.parametrize("kwargs", [
    dict(min_nclusters=0),
    dict(max_nclusters=-1),
    dict(min_nclusters=4, max_nclusters=2),
    dict(ntrials=0),
    dict(rel_tol=0),
    dict(min_nclusters=1.5),
])
def test_invalid(kwargs):
    with pytest.raises(ConfigurationError):
        KmeansClusterer(**kwargs)
