# -- SPH Time Integration Schemes -- #

'''
Time integration steps for the 2D SPH solvers.

SymplecticEuler advances the classical solver from accumulated
forces (force per unit volume, so acceleration = F / rho).
PositionPredictor is the prediction step of the viscoelastic
predict-relax-correct scheme.

References:
-----------
Hairer et al. (2003) -- Geometric Numerical Integration
Clavet et al. (2005) -- Particle-based viscoelastic fluid simulation
'''

from __future__ import annotations

from typing import Protocol

from sphFluid2D.sph.particles import ClassicalParticleSystem, ViscoelasticParticleSystem


class TimeIntegrator(Protocol):
    '''Protocol for time integration schemes.'''

    def integrate(self, particles, dt: float) -> None:
        '''Advance the particle system by one time step.'''
        ...


######################################################################
# -- Symplectic Euler Integrator -- #
######################################################################

class SymplecticEuler:
    '''
    Symplectic (semi-implicit) Euler integrator.

    Update sequence:
        v(t+dt) = v(t) + (F(t) / rho(t)) * dt   (kick)
        x(t+dt) = x(t) + v(t+dt) * dt          (drift)

    Particles with non-positive density receive no kick.
    '''

    def integrate(self, particles: ClassicalParticleSystem, dt: float) -> None:
        '''
        Advance all particles by one time step.

        Parameters:
        -----------
        particles : ClassicalParticleSystem
            Particle system to advance
        dt : float
            Time step size
        '''
        inverseDensity = particles.inverseDensities()

        # Kick
        particles.velocities += particles.forces * inverseDensity[:, None] * dt

        # Drift with the updated velocity
        particles.positions += particles.velocities * dt


######################################################################
# -- Prediction Step -- #
######################################################################

class PositionPredictor:
    '''
    Prediction step of the viscoelastic scheme.

        x_last = x
        x      = x + v * dt
    '''

    def integrate(self, particles: ViscoelasticParticleSystem, dt: float) -> None:
        '''Save the current positions, then move along the velocities.'''
        particles.lastPositions = particles.positions.copy()
        particles.positions += particles.velocities * dt
