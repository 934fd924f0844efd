from os.path import join, split

path_to_testdata = split(__file__)[0]

path_to_config = join(path_to_testdata, "config/config.yml")
path_to_invalid_config = join(path_to_testdata, "config/config-invalid.yml")
path_to_env_config = join(path_to_testdata, "config/config-env.yml")

path_to_coordinates = join(path_to_testdata, "input/coordinates.txt")
path_to_graphs = join(path_to_testdata, "input/graphs.txt")
