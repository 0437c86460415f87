from sphFluid2D.runner import main

main()
