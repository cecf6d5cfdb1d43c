"""Shared utilities for this package.

Class logPrint both 'logs' and 'prints' (when verbosity insists) any output
string. The input arguments & runtime of every command-line script are also
logged. smart_open picks a (de)compressor from the filename extension, which
is how every FASTQ and table in the pipeline is read and written.

"""
from datetime import datetime
import atexit, os

compressions = {'.gz': 'gzip', '.gzip': 'gzip', '.bz2': 'bz2', '.lzma': 'lzma', '.xz': 'lzma'}

def smart_open(filename, mode='rb', makedirs=False):
    filename = str(filename)
    if makedirs:
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
    ext = os.path.splitext(filename)[1]
    if ext in compressions:
        module = __import__(compressions[ext])
        if 't' not in mode and 'b' not in mode:
            mode += 't'
        return module.open(filename, mode)
    return open(filename, mode)

class logPrint(object):
    def line_break(self):
        self.f.write(80*'-'+'\n')

    def __call__(self, line, print_line=False, header=False):
        if self.verbose or print_line:
            print(line)
        if header:
            self.f.write((len(line)+4)*"#"+'\n')
            self.f.write('# '+str(line)+' #\n')
            self.f.write((len(line)+4)*"#"+'\n')
        else:
            self.f.write(str(line)+'\n')
        self.f.flush()

    def close_logPrint(self):
        if self.f.closed:
            return
        runtime = datetime.now() - self.start_time
        self('Runtime: {:}'.format(str(runtime).split('.')[0]))
        self.line_break()
        self.f.close()

    def __init__(self, input_args, filename=None):
        import __main__ as main
        self.start_time = datetime.now()
        self.program = os.path.basename(getattr(main, '__file__', 'asv_seq')).partition('.py')[0]
        self.filename = self.program+'.LOG' if filename is None else filename
        args_dict = vars(input_args).copy()
        self.verbose = args_dict.pop('verbose', False)
        print("Logging output to", self.filename)
        self.f = open(self.filename, 'a')
        self.f.write('\n')
        self.line_break()
        self.f.write("Output Summary of {0.program}, executed at {0.start_time:%c} with the following input arguments:\n".format(self))
        self.line_break()
        for arg, val in args_dict.items():
            self.f.write("{:}: {:}\n".format(arg, val))
        self.line_break()
        atexit.register(self.close_logPrint)
