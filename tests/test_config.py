import numpy as np
import pytest
from minins.config import (ConfigurationError, check_sampler_config,
                           check_clustering_config, load_sampler_config,
                           load_clustering_config, load_data)


def write(path, text):
    path.write_text(text)
    return str(path)


def test_defaults():
    config = check_sampler_config(nlive=100)
    assert config.min_nlive == 100
    assert config.n_initial_iterations_without_clustering == 100
    assert config.n_iterations_with_same_clustering == 10
    assert isinstance(config.nlive, int)
    clust = check_clustering_config()
    assert clust.min_nclusters == 1
    assert clust.max_nclusters == 6


def test_load_sampler_config(tmp_path):
    fname = write(
        tmp_path / 'NSMC.txt', '# nested sampler\n'
        '1000\n100\n50000\n1000\n50\n2.0\n0.6\n0.05\n')
    config = load_sampler_config(fname)
    assert config.nlive == 1000
    assert config.min_nlive == 100
    assert config.max_draw_attempts == 50000
    assert config.n_initial_iterations_without_clustering == 1000
    assert config.n_iterations_with_same_clustering == 50
    assert config.initial_enlarge == 2.0
    assert config.shrinking_rate == 0.6
    assert config.termination_factor == 0.05


@pytest.mark.parametrize('text', [
    '1000\n100\n50000\n1000\n50\n2.0\n0.6\n',
    '1000\n100\n50000\n1000\n50\n2.0\n1.6\n0.05\n',
    '1000\n2000\n50000\n1000\n50\n2.0\n0.6\n0.05\n',
    '1000.5\n100\n50000\n1000\n50\n2.0\n0.6\n0.05\n',
    '1000\n100\n50000\n1000\n50\n2.0\n0.6\nabc\n',
])
def test_invalid_sampler_config(tmp_path, text):
    fname = write(tmp_path / 'NSMC.txt', text)
    with pytest.raises(ConfigurationError):
        load_sampler_config(fname)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_sampler_config(str(tmp_path / 'missing.txt'))
    with pytest.raises(ConfigurationError):
        load_data(str(tmp_path / 'missing.txt'))


def test_load_clustering_config(tmp_path):
    fname = write(tmp_path / 'Xmeans.txt', '1\n4\n')
    config = load_clustering_config(fname, ntrials=5, rel_tol=0.1)
    assert config.min_nclusters == 1
    assert config.max_nclusters == 4
    assert config.ntrials == 5
    assert config.rel_tol == 0.1
    for text in ['0\n4\n', '5\n4\n', '1\n']:
        with pytest.raises(ConfigurationError):
            load_clustering_config(write(tmp_path / 'bad.txt', text))


def test_load_data(tmp_path):
    data = np.column_stack([np.arange(5.), np.arange(5.)**2, np.ones(5)])
    fname = str(tmp_path / 'data.txt')
    np.savetxt(fname, data)
    x, y, err = load_data(fname)
    assert np.allclose(x, data[:, 0])
    assert np.allclose(y, data[:, 1])
    assert np.allclose(err, 1)
    np.savetxt(fname, data[:, :2])
    with pytest.raises(ConfigurationError):
        load_data(fname)
