"""
====
Line
====

Example of fitting a straight line to some data.
"""

import numpy as np

import minins

rstate = np.random.default_rng(0)

# Generate some data
theta_true = [0.5, 10.0]
N = 50
x = np.sort(10 * rstate.random(N))
yerr = 0.1 + 0.5 * rstate.random(N)
model = minins.LinearModel(x)
y = model(theta_true) + yerr * rstate.normal(size=N)

# Flat prior in 0 < m < 1, 0 < b < 100
prior = minins.UniformPrior([0., 0.], [1., 100.])
likelihood = minins.NormalLikelihood(y, yerr, model)

# Run nested sampling
sampler = minins.NestedSampler(likelihood,
                               prior,
                               nlive=1000,
                               min_nlive=100,
                               rstate=rstate)
sampler.run_nested()
res = sampler.results
res.summary()

# weighted average and covariance:
p, cov = minins.utils.mean_and_cov(res.samples, res.importance_weights())

print("m = {0:5.2f} +/- {1:5.2f}".format(p[0], np.sqrt(cov[0, 0])))
print("b = {0:5.2f} +/- {1:5.2f}".format(p[1], np.sqrt(cov[1, 1])))
print("clusters used: {0:d}".format(int(res.nclusters.max())))
